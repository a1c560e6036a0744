from typing import List

import pytest
from markdown_it import MarkdownIt

from jsmkdocs.markdown import (
    ParseFailure,
    TagFields,
    match_desc_tag,
    match_returns_tag,
    match_row_tag,
    render_comment,
    render_section,
)
from jsmkdocs.models import Diagnostic, RawComment, Tag


def make(*tags: Tag, line: int = 10) -> RawComment:
    return RawComment(file_path="src/users.js", line=line, tags=tags)


def table_row_counts(md: str) -> List[int]:
    """Number of body rows of every table in `md`."""
    tokens = MarkdownIt("commonmark").enable("table").parse(md)
    counts: List[int] = []
    in_body = False
    for t in tokens:
        if t.type == "table_open":
            counts.append(0)
        elif t.type == "tbody_open":
            in_body = True
        elif t.type == "tbody_close":
            in_body = False
        elif t.type == "tr_open" and in_body:
            counts[-1] += 1
    return counts


def test_match_desc_tag():
    assert match_desc_tag("getUsernames - fetch usernames") == TagFields(name="getUsernames", description="fetch usernames")
    assert isinstance(match_desc_tag("lonely"), ParseFailure)


def test_match_row_tag():
    assert match_row_tag("param", "{string} name - the name") == TagFields(name="name", type="string", description="the name")
    assert match_row_tag("data", "{Array[]} items list of items") == TagFields(name="items", type="Array[]", description="list of items")
    failure = match_row_tag("param", "name - no type")
    assert isinstance(failure, ParseFailure)
    assert failure.tag_type == "param"
    assert failure.raw == "name - no type"


def test_match_returns_tag():
    assert match_returns_tag("{Promise} resolves later") == TagFields(type="Promise", description="resolves later")
    assert isinstance(match_returns_tag("resolves later"), ParseFailure)


def test_render_heading():
    md = render_comment(make(Tag("desc", "getUsernames - fetch usernames")))
    assert md == "### getUsernames\nfetch usernames\n<br><br>\n"


def test_render_full_comment_in_fixed_order():
    c = make(
        Tag("returns", "{Promise} resolves when stored"),
        Tag("data", "{Object} user - the stored user"),
        Tag("param", "{string} name - the user name"),
        Tag("desc", "createUser - create a user"),
        Tag("param", "{number} age - the user age"),
    )
    md = render_comment(c)

    assert md == (
        "### createUser\ncreate a user\n<br><br>\n"
        "#### Params\nName | Type | Description\n--- | --- | ---\n"
        "name | `string` | the user name\n"
        "age | `number` | the user age\n\n"
        "#### Data\nName | Type | Description\n--- | --- | ---\n"
        "user | `Object` | the stored user\n\n"
        "#### Returns\n`Promise` resolves when stored\n<br><br>\n"
    )
    assert table_row_counts(md) == [2, 1]


def test_empty_families_are_omitted():
    md = render_comment(make(Tag("desc", "ping - check liveness")))
    assert "####" not in md


def test_malformed_row_is_flagged_without_touching_siblings():
    diagnostics: List[Diagnostic] = []
    c = make(
        Tag("desc", "createUser - create a user"),
        Tag("param", "{string} name - the user name"),
        Tag("param", "age without a type"),
        Tag("param", "{boolean} admin - grant admin rights"),
    )
    md = render_comment(c, diagnostics)

    assert "name | `string` | the user name\n" in md
    assert "admin | `boolean` | grant admin rights\n" in md
    assert "*Malformed @param tag:* `age without a type`" in md
    assert table_row_counts(md) == [3]
    assert len(diagnostics) == 1
    d = diagnostics[0]
    assert (d.file_path, d.line, d.tag_type, d.raw) == ("src/users.js", 10, "param", "age without a type")


def test_missing_desc_tag_does_not_raise():
    diagnostics: List[Diagnostic] = []
    md = render_comment(make(Tag("param", "{string} name - the name")), diagnostics)

    assert not md.startswith("### ")
    assert md.startswith("#### Params")
    assert [d.tag_type for d in diagnostics] == ["desc"]


def test_malformed_desc_tag_is_flagged():
    diagnostics: List[Diagnostic] = []
    md = render_comment(make(Tag("desc", "nodescription")), diagnostics)

    assert md == "*Malformed @desc tag:* `nodescription`\n<br><br>\n"
    assert len(diagnostics) == 1


def code_spans(md: str) -> List[str]:
    tokens = MarkdownIt("commonmark").enable("table").parse(md)
    return [c.content for t in tokens if t.type == "inline" for c in t.children if c.type == "code_inline"]


@pytest.mark.parametrize(
    "tag, expected",
    [
        (Tag("desc", "`oops`"), "*Malformed @desc tag:* `` `oops` ``"),
        (Tag("param", "bad `x` row"), "*Malformed @param tag:* `` bad `x` row ``"),
        (Tag("param", "a ``double`` run"), "*Malformed @param tag:* ``` a ``double`` run ```"),
    ],
)
def test_malformed_raw_with_backticks_stays_one_code_span(tag, expected):
    md = render_comment(make(tag) if tag.type == "desc" else make(Tag("desc", "a - b"), tag))

    assert expected in md
    assert tag.string in code_spans(md)


def test_union_type_pipes_are_escaped_in_table_cells():
    md = render_comment(make(
        Tag("desc", "find - find a user"),
        Tag("param", "{string|number} id - either a name | or a number"),
    ))

    assert "id | `string\\|number` | either a name \\| or a number\n" in md
    assert table_row_counts(md) == [1]


def test_malformed_returns_renders_nothing():
    diagnostics: List[Diagnostic] = []
    md = render_comment(make(Tag("desc", "a - b"), Tag("returns", "no type here")), diagnostics)

    assert "Returns" not in md
    assert [d.tag_type for d in diagnostics] == ["returns"]


def test_return_alias():
    md = render_comment(make(Tag("desc", "a - b"), Tag("return", "{number} the count")))
    assert "#### Returns\n`number` the count\n<br><br>\n" in md


def test_render_section():
    comments = [make(Tag("desc", "first - one"), line=1), make(Tag("desc", "second - two"), line=2)]
    md = render_section("Create", comments)

    assert md.startswith("## Create\n\n### first\none\n")
    assert md.index("### first") < md.index("### second")
