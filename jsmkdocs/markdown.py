"""Render doc comments and sections as MkDocs flavored Markdown.

Tag strings are matched with small regular expressions. Each matcher returns
either the extracted fields or a ParseFailure, and renderers turn failures
into a visible placeholder plus a Diagnostic instead of dropping the text.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Union

from .models import Diagnostic, RawComment, Tag

logger = logging.getLogger(__name__)


_TYPE_RGX = r"\{([^{}]+)\}"
_NAME_RGX = r"([a-zA-Z0-9_$\-.\[\]=]+)(?:\s+-)?"
_DESC_RGX = r"([^-].*)"

DESC_TAG_RE = re.compile(rf"^{_NAME_RGX}\s+{_DESC_RGX}$")
PARAM_TAG_RE = re.compile(rf"^{_TYPE_RGX}\s+{_NAME_RGX}\s+{_DESC_RGX}$")
RETURNS_TAG_RE = re.compile(rf"^{_TYPE_RGX}\s+{_DESC_RGX}$")

DESC_TAG = "desc"
RETURNS_TAGS = ("returns", "return")

# (tag type, table heading) in output order
TABLE_FAMILIES = (
    ("param", "Params"),
    ("data", "Data"),
)


@dataclass(frozen=True)
class TagFields:
    name: str = ""
    type: str = ""
    description: str = ""


@dataclass(frozen=True)
class ParseFailure:
    tag_type: str
    raw: str
    message: str = "does not match the expected pattern"


TagMatch = Union[TagFields, ParseFailure]


def match_desc_tag(raw: str) -> TagMatch:
    m = DESC_TAG_RE.match(raw.strip())
    if not m:
        return ParseFailure(DESC_TAG, raw, "expected '<name> - <description>'")
    return TagFields(name=m.group(1), description=m.group(2).strip())


def match_row_tag(tag_type: str, raw: str) -> TagMatch:
    m = PARAM_TAG_RE.match(raw.strip())
    if not m:
        return ParseFailure(tag_type, raw, "expected '{<type>} <name> - <description>'")
    return TagFields(type=m.group(1), name=m.group(2), description=m.group(3).strip())


def match_returns_tag(raw: str) -> TagMatch:
    m = RETURNS_TAG_RE.match(raw.strip())
    if not m:
        return ParseFailure("returns", raw, "expected '{<type>} <description>'")
    return TagFields(type=m.group(1), description=m.group(2).strip())


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|")


def _report(failure: ParseFailure, comment: RawComment, diagnostics: Optional[List[Diagnostic]]) -> None:
    diagnostic = Diagnostic(
        file_path=comment.file_path,
        line=comment.line,
        tag_type=failure.tag_type,
        raw=failure.raw,
        message=failure.message,
    )
    logger.warning("Malformed tag at %s", diagnostic)
    if diagnostics is not None:
        diagnostics.append(diagnostic)


def code_span(text: str) -> str:
    """Wrap `text` in a code span whose fence is longer than any backtick run inside it."""
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    fence = "`" * (longest + 1)
    if longest:
        # Padding keeps a leading or trailing backtick from merging into the fence
        return f"{fence} {text} {fence}"
    return f"{fence}{text}{fence}"


def _malformed(failure: ParseFailure) -> str:
    return f"*Malformed @{failure.tag_type} tag:* {code_span(failure.raw)}"


def render_name_and_desc(comment: RawComment, diagnostics: Optional[List[Diagnostic]] = None) -> str:
    tag = comment.first_tag(DESC_TAG)
    if tag is None:
        failure = ParseFailure(DESC_TAG, "", "missing")
        _report(failure, comment, diagnostics)
        return ""
    result = match_desc_tag(tag.string)
    if isinstance(result, ParseFailure):
        _report(result, comment, diagnostics)
        return f"{_malformed(result)}\n<br><br>\n"
    return f"### {result.name}\n{result.description}\n<br><br>\n"


def render_table_head(heading: str) -> str:
    return f"#### {heading}\nName | Type | Description\n--- | --- | ---\n"


def render_table_rows(comment: RawComment, tags: List[Tag], diagnostics: Optional[List[Diagnostic]] = None) -> str:
    rows: List[str] = []
    for t in tags:
        result = match_row_tag(t.type, t.string)
        if isinstance(result, ParseFailure):
            _report(result, comment, diagnostics)
            rows.append(f"&mdash; | &mdash; | {_escape_cell(_malformed(result))}\n")
            continue
        rows.append(f"{result.name} | `{_escape_cell(result.type)}` | {_escape_cell(result.description)}\n")
    return "".join(rows) + "\n"


def render_returns(comment: RawComment, diagnostics: Optional[List[Diagnostic]] = None) -> str:
    tag = None
    for tag_type in RETURNS_TAGS:
        tag = comment.first_tag(tag_type)
        if tag is not None:
            break
    if tag is None:
        return ""
    result = match_returns_tag(tag.string)
    if isinstance(result, ParseFailure):
        _report(result, comment, diagnostics)
        return ""
    return f"#### Returns\n`{result.type}` {result.description}\n<br><br>\n"


def render_comment(comment: RawComment, diagnostics: Optional[List[Diagnostic]] = None) -> str:
    """Render one comment: heading, Params table, Data table, Returns.

    Families without tags are left out entirely. Malformed tags are reported
    into `diagnostics` (when given) and never raise.
    """
    parts = [render_name_and_desc(comment, diagnostics)]
    for tag_type, heading in TABLE_FAMILIES:
        tags = comment.tags_of(tag_type)
        if not tags:
            continue
        parts.append(render_table_head(heading))
        parts.append(render_table_rows(comment, tags, diagnostics))
    parts.append(render_returns(comment, diagnostics))
    return "".join(parts)


def render_section(section: str, comments: List[RawComment], diagnostics: Optional[List[Diagnostic]] = None) -> str:
    return f"## {section}\n\n" + "".join(render_comment(c, diagnostics) for c in comments)
