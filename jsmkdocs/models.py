from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Tag:
    type: str
    string: str  # raw text after '@<type>'
    types: Tuple[str, ...] = ()
    name: str = ""
    description: str = ""


@dataclass(frozen=True)
class RawComment:
    file_path: str
    line: int
    summary: str = ""
    body: str = ""
    tags: Tuple[Tag, ...] = ()

    @property
    def description(self) -> str:
        if self.summary and self.body:
            return f"{self.summary}\n\n{self.body}"
        return self.summary or self.body

    def tags_of(self, tag_type: str) -> List[Tag]:
        return [t for t in self.tags if t.type == tag_type]

    def first_tag(self, tag_type: str) -> Optional[Tag]:
        for t in self.tags:
            if t.type == tag_type:
                return t
        return None


@dataclass
class PageNode:
    name: str
    # Section name -> comments in arrival order
    sections: Dict[str, List[RawComment]] = field(default_factory=dict)
    sub_pages: List["PageNode"] = field(default_factory=list)

    def get_page(self, name: str) -> "PageNode":
        """Return the direct child page named `name`, creating it if needed."""
        for page in self.sub_pages:
            if page.name == name:
                return page
        page = PageNode(name=name)
        self.sub_pages.append(page)
        return page

    def add_to_section(self, section: str, comment: RawComment) -> None:
        self.sections.setdefault(section, []).append(comment)

    def iter_comments(self):
        for comments in self.sections.values():
            yield from comments
        for page in self.sub_pages:
            yield from page.iter_comments()


@dataclass
class DocsTree:
    name: str
    root: PageNode


@dataclass(frozen=True)
class Diagnostic:
    file_path: str
    line: int
    tag_type: str
    raw: str
    message: str

    def __str__(self) -> str:
        return f"{self.file_path}:{self.line}: @{self.tag_type} {self.message}: {self.raw!r}"
