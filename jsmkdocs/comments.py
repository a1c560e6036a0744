import re
from typing import List, Tuple

from pygments import lex
from pygments.lexers import JavascriptLexer, TypeScriptLexer
from pygments.token import Token

from .models import RawComment, Tag


# Tag families whose string reads "{type} name - description"
NAMED_TAGS = {"param", "arg", "argument", "data", "property", "prop"}


def _normalize_doc_comment_text(raw: str) -> str:
    """Strip the /** */ delimiters and the leading '*' gutter of a doc comment."""
    s = re.sub(r"^/\*\*+ ?", "", raw)
    s = re.sub(r"\s*\*+/\s*$", "", s)

    lines = s.splitlines()

    def is_star_line(l: str) -> bool:
        return bool(re.match(r"^[\t ]*\*", l))

    # The first line follows '/**' directly, so only the tail decides star-stripping
    tail = [l for l in lines[1:] if l.strip() != ""]
    if tail and all(is_star_line(l) for l in tail):
        new_lines: List[str] = [lines[0]] if lines else []
        for l in lines[1:]:
            l = re.sub(r"^[\t ]*\*", "", l, count=1)
            if l.startswith(" "):
                l = l[1:]
            new_lines.append(l)
        lines = new_lines

    # Remove leading/trailing completely empty lines
    while lines and lines[0].strip() == "":
        lines.pop(0)
    while lines and lines[-1].strip() == "":
        lines.pop()

    if not lines:
        return ""

    # Trim maximum common indentation of everything below the first line
    non_empty = [l for l in lines[1:] if l.strip() != ""]
    if non_empty:
        common = re.match(r"^[\t ]*", non_empty[0]).group(0)
        for l in non_empty[1:]:
            ws = re.match(r"^[\t ]*", l).group(0)
            while not ws.startswith(common) and common:
                common = common[:-1]
        if common:
            lines = [lines[0]] + [l[len(common):] if l.startswith(common) else l for l in lines[1:]]

    lines[0] = lines[0].strip()
    lines = [l.rstrip() if l.strip() else "" for l in lines]
    return "\n".join(lines).rstrip()


def parse_tag_fields(tag_type: str, string: str) -> Tuple[Tuple[str, ...], str, str]:
    """Best-effort split of a tag string into (types, name, description)."""
    types: Tuple[str, ...] = ()
    rest = string.strip()
    m = re.match(r"^\{([^{}]*)\}\s*(.*)$", rest)
    if m:
        types = tuple(t.strip() for t in m.group(1).split("|") if t.strip())
        rest = m.group(2)
    if tag_type in NAMED_TAGS:
        parts = rest.split(None, 1)
        if not parts:
            return types, "", ""
        name = parts[0]
        description = parts[1] if len(parts) > 1 else ""
        description = re.sub(r"^-\s*", "", description)
        return types, name, description
    return types, "", rest


def parse_doc_comment(body: str, file_path: str = "", line: int = 0) -> RawComment:
    """Parse a normalized doc comment body into a RawComment.

    Lines before the first '@tag' form the description, whose first paragraph
    is the summary. Each '@type rest' line opens a tag and any following
    non-tag lines are joined to it with a single space.
    """
    description_lines: List[str] = []
    raw_tags: List[Tuple[str, List[str]]] = []
    for l in body.splitlines():
        m = re.match(r"^\s*@(\w[\w-]*)\s*(.*)$", l)
        if m:
            raw_tags.append((m.group(1), [m.group(2).strip()]))
        elif raw_tags:
            if l.strip():
                raw_tags[-1][1].append(l.strip())
        else:
            description_lines.append(l)

    description = "\n".join(description_lines).strip("\n")
    paragraphs = re.split(r"\n\s*\n", description, maxsplit=1) if description else [""]
    summary = paragraphs[0].strip()
    rest = paragraphs[1].strip() if len(paragraphs) > 1 else ""

    tags: List[Tag] = []
    for tag_type, parts in raw_tags:
        string = " ".join(p for p in parts if p)
        types, name, desc = parse_tag_fields(tag_type, string)
        tags.append(Tag(type=tag_type, string=string, types=types, name=name, description=desc))

    return RawComment(file_path=file_path, line=line, summary=summary, body=rest, tags=tuple(tags))


def _lexer_for(lang: str):
    if lang == "typescript":
        return TypeScriptLexer()
    # Default to JavaScript for anything with C-style block comments
    return JavascriptLexer()


def extract_doc_comments_from_text(text: str, lang: str = "javascript", file_path: str = "") -> List[RawComment]:
    comments: List[RawComment] = []
    line = 1
    for tok_type, tok_val in lex(text, _lexer_for(lang)):
        if tok_type in Token.Comment.Multiline and _is_doc_comment(tok_val):
            body = _normalize_doc_comment_text(tok_val)
            comments.append(parse_doc_comment(body, file_path=file_path, line=line))
        line += tok_val.count("\n")
    return comments


def _is_doc_comment(token: str) -> bool:
    # '/**/' is an empty plain comment, '/*!' a preserved license banner
    return token.startswith("/**") and not token.startswith("/**/")
