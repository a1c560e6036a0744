import asyncio
import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .markdown import render_section
from .models import Diagnostic, DocsTree, PageNode, RawComment

logger = logging.getLogger(__name__)


LAYOUTS = ("sections", "pages")
INDENT = "    "


def format_filename(name: str) -> str:
    """Lower-case `name` and collapse whitespace runs and path separators into a single hyphen."""
    return re.sub(r"[\s/\\]+", "-", name.lower())


def _quote(value: str) -> str:
    # YAML single-quoted scalar
    return "'" + value.replace("'", "''") + "'"


def _nav_line(text: str, indent: int) -> str:
    return f"{INDENT * indent}- {text}"


@dataclass
class PageFile:
    rel_path: str
    # (section name, comments) blocks in output order
    blocks: List[Tuple[str, List[RawComment]]] = field(default_factory=list)


@dataclass
class DocsPlan:
    """Everything to write for one document, computed before any I/O."""

    name: str
    nav: List[str]
    files: Dict[str, PageFile]

    def manifest(self) -> str:
        lines = [f"site_name: {_quote(self.name)}", "pages:", _nav_line("Home: 'index.md'", 0)]
        lines.extend(self.nav)
        return "\n".join(lines) + "\n"

    def index(self) -> str:
        return f"# {self.name}\n"

    def render(self, diagnostics: Optional[List[Diagnostic]] = None) -> Dict[str, str]:
        """Return relative path -> Markdown text, starting with index.md."""
        texts = {"index.md": self.index()}
        for rel_path, page_file in self.files.items():
            text = render_page_file(page_file, diagnostics)
            if rel_path in texts:
                logger.warning("Section file '%s' shares its path with the index page; appending it", rel_path)
                text = texts[rel_path] + "\n" + text
            texts[rel_path] = text
        return texts


@dataclass
class DocsResult:
    name: str
    path: str
    written: List[str] = field(default_factory=list)
    errors: List[BaseException] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class _Planner:
    def __init__(self, layout: str):
        if layout not in LAYOUTS:
            raise ValueError(f"Unknown layout '{layout}', expected one of: {', '.join(LAYOUTS)}")
        self.layout = layout
        self.nav: List[str] = []
        self.files: Dict[str, PageFile] = {}

    def _add_file(self, rel_parts: Tuple[str, ...], filename: str, blocks: List[Tuple[str, List[RawComment]]]) -> str:
        rel_path = "/".join(rel_parts + (filename,))
        page_file = self.files.get(rel_path)
        if page_file is None:
            page_file = PageFile(rel_path=rel_path)
            self.files[rel_path] = page_file
        else:
            logger.warning("Several pages map to '%s'; their contents are merged into one file", rel_path)
        page_file.blocks.extend(blocks)
        return rel_path

    def _sections_as_files(self, node: PageNode, rel_parts: Tuple[str, ...], indent: int) -> None:
        for section, comments in node.sections.items():
            rel_path = self._add_file(rel_parts, f"{format_filename(section)}.md", [(section, comments)])
            self.nav.append(_nav_line(f"{_quote(section)}: {_quote(rel_path)}", indent))

    def walk(self, node: PageNode, rel_parts: Tuple[str, ...] = (), indent: int = 0) -> None:
        """Emit nav lines and files for `node`'s own sections, then its sub-pages."""
        self._sections_as_files(node, rel_parts, indent)
        for page in node.sub_pages:
            self._walk_page(page, rel_parts, indent)

    def _walk_page(self, page: PageNode, rel_parts: Tuple[str, ...], indent: int) -> None:
        dir_name = format_filename(page.name)
        blocks = list(page.sections.items())
        if self.layout == "pages" and blocks and not page.sub_pages:
            rel_path = self._add_file(rel_parts, f"{dir_name}.md", blocks)
            self.nav.append(_nav_line(f"{_quote(page.name)}: {_quote(rel_path)}", indent))
            return

        self.nav.append(_nav_line(f"{_quote(page.name)}:", indent))
        child_parts = rel_parts + (dir_name,)
        if self.layout == "pages":
            if blocks:
                rel_path = self._add_file(child_parts, "index.md", blocks)
                self.nav.append(_nav_line(f"{_quote(page.name)}: {_quote(rel_path)}", indent + 1))
        else:
            self._sections_as_files(page, child_parts, indent + 1)
        for sub in page.sub_pages:
            self._walk_page(sub, child_parts, indent + 1)


def plan_docs(tree: DocsTree, layout: str = "sections") -> DocsPlan:
    """Lay out one document tree as navigation lines and page files.

    Paths are relative to the document's markdown root and always use '/'.
    """
    planner = _Planner(layout)
    planner.walk(tree.root)
    return DocsPlan(name=tree.name, nav=planner.nav, files=planner.files)


def render_page_file(page_file: PageFile, diagnostics: Optional[List[Diagnostic]] = None) -> str:
    return "".join(render_section(section, comments, diagnostics) for section, comments in page_file.blocks)


def _check_docs_name(name: str) -> None:
    if name in ("", ".", "..") or "/" in name or (os.sep != "/" and os.sep in name):
        raise ValueError(f"Document name {name!r} cannot be used as a directory name")


def _is_inside(path: str, directory: str) -> bool:
    directory = os.path.abspath(directory)
    return os.path.commonpath([directory, os.path.abspath(path)]) == directory


def _recreate_dir(docs_path: str, markdown_path: str) -> None:
    if os.path.exists(docs_path):
        logger.info("Removing previous output %s", docs_path)
        shutil.rmtree(docs_path)
    os.makedirs(markdown_path, exist_ok=True)


def _write_text(path: str, text: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


async def _write_file(path: str, text: str) -> str:
    try:
        await asyncio.to_thread(_write_text, path, text)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        raise
    logger.info("Wrote %s", path)
    return path


async def write_docs_tree(
    tree: DocsTree,
    output_dir: str,
    layout: str = "sections",
    diagnostics: Optional[List[Diagnostic]] = None,
) -> DocsResult:
    """Write one document: docs/index.md, one file per page or section, mkdocs.yml.

    The document's previous output directory is removed first. Page writes are
    issued together; mkdocs.yml is written once all of them have finished,
    whether they succeeded or not.
    """
    docs_path = os.path.join(output_dir, tree.name)
    markdown_path = os.path.join(docs_path, "docs")
    result = DocsResult(name=tree.name, path=docs_path)

    try:
        _check_docs_name(tree.name)
        plan = plan_docs(tree, layout)
        await asyncio.to_thread(_recreate_dir, docs_path, markdown_path)
    except (OSError, ValueError) as e:
        logger.error("\"%s\" docs write failed: %s", tree.name, e)
        result.errors.append(e)
        return result

    writes = []
    for rel_path, text in plan.render(diagnostics).items():
        path = os.path.normpath(os.path.join(markdown_path, *rel_path.split("/")))
        if not _is_inside(path, markdown_path):
            e = ValueError(f"Page path '{rel_path}' leaves the document directory {markdown_path}")
            logger.error("\"%s\" skipping page: %s", tree.name, e)
            result.errors.append(e)
            continue
        writes.append(_write_file(path, text))

    outcomes = await asyncio.gather(*writes, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            result.errors.append(outcome)
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            result.written.append(outcome)

    try:
        result.written.append(await _write_file(os.path.join(docs_path, "mkdocs.yml"), plan.manifest()))
    except OSError as e:
        result.errors.append(e)

    if result.ok:
        logger.info("\"%s\" docs write complete (%d files)", tree.name, len(result.written))
    else:
        logger.error("\"%s\" docs write failed (%d error(s))", tree.name, len(result.errors))
    return result


async def write_all(
    trees: Iterable[DocsTree],
    output_dir: str,
    layout: str = "sections",
    diagnostics: Optional[List[Diagnostic]] = None,
) -> List[DocsResult]:
    tasks = [write_docs_tree(t, output_dir, layout, diagnostics) for t in trees]
    return list(await asyncio.gather(*tasks))


def generate_docs(
    trees: Dict[str, DocsTree],
    output_dir: str,
    layout: str = "sections",
    diagnostics: Optional[List[Diagnostic]] = None,
) -> List[DocsResult]:
    """Write every document tree under `output_dir`, one subdirectory each.

    Returns one DocsResult per document, in document order. An empty `trees`
    mapping is not an error and yields an empty list.
    """
    if not trees:
        logger.info("No documents to write. Nothing to do.")
        return []
    logger.info("Writing %d document(s) to %s", len(trees), output_dir)
    return asyncio.run(write_all(trees.values(), output_dir, layout, diagnostics))
