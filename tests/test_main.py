import json
from pathlib import Path

import pytest
import yaml

from main import main


USERS_JS = """/**
 * @docs API // Users // Create
 * @desc createUser - create a user
 * @param {string} name - the user name
 * @returns {Promise} resolves when created
 */
export function createUser(name) {}

/**
 * @docs API // Users // Delete
 * @desc deleteUser - delete a user
 * @param {string} id - the user id
 * @param broken row
 */
export function deleteUser(id) {}

/** Internal helper, not part of the docs. */
function helper() {}
"""


@pytest.fixture
def project(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "users.js").write_text(USERS_JS, encoding="utf-8")
    (tmp_path / "node_modules" / "dep").mkdir(parents=True)
    (tmp_path / "node_modules" / "dep" / "index.js").write_text(
        "/**\n * @docs Dep // Sec\n * @desc dep - dependency\n */\n", encoding="utf-8"
    )
    return tmp_path


def test_main_writes_docs(project):
    code = main(["--config", str(project)])

    assert code == 0
    out = project / "docs_src"
    assert sorted(p.name for p in out.iterdir()) == ["API"]
    create = (out / "API" / "docs" / "users" / "create.md").read_text(encoding="utf-8")
    assert "### createUser" in create
    assert "name | `string` | the user name" in create
    delete = (out / "API" / "docs" / "users" / "delete.md").read_text(encoding="utf-8")
    assert "*Malformed @param tag:* `broken row`" in delete
    manifest = yaml.safe_load((out / "API" / "mkdocs.yml").read_text(encoding="utf-8"))
    assert manifest["pages"][1] == {"Users": [{"Create": "users/create.md"}, {"Delete": "users/delete.md"}]}


def test_main_cli_overrides(project, tmp_path_factory, monkeypatch):
    out = tmp_path_factory.mktemp("out")
    monkeypatch.chdir(project)

    code = main(["--config", str(project), "--output", str(out), "--source", "src", "--layout", "pages"])

    assert code == 0
    assert (out / "API" / "docs" / "users.md").exists()
    assert not (project / "docs_src").exists()


def test_main_list_json(project, capsys):
    code = main(["--config", str(project), "--list", "--json"])

    assert code == 0
    listed = json.loads(capsys.readouterr().out)
    assert [c["line"] for c in listed] == [1, 9]
    assert listed[0]["tags"][0] == {
        "type": "docs",
        "string": "API // Users // Create",
        "types": [],
        "name": "",
        "description": "API // Users // Create",
    }


def test_main_nothing_to_do(tmp_path):
    (tmp_path / "empty.js").write_text("/** no directive */\n", encoding="utf-8")

    assert main(["--config", str(tmp_path)]) == 0
    assert not (tmp_path / "docs_src").exists()


def test_main_config_error(tmp_path):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 2
    assert main(["--config", str(tmp_path), "--regex", "("]) == 2


def test_main_reports_failed_document(project, monkeypatch):
    from jsmkdocs import writer

    def failing_write(path: str, text: str) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(writer, "_write_text", failing_write)

    assert main(["--config", str(project)]) == 1


def test_main_version(capsys):
    from main import __version__

    with pytest.raises(SystemExit) as exc:
        main(["--version"])

    assert exc.value.code == 0
    assert capsys.readouterr().out.strip().endswith(__version__)
