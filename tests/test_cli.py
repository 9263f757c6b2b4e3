"""
Tests for prompt_manager.cli module.
"""

import json

import pytest
from typer.testing import CliRunner

from prompt_manager.cli import app, console
from prompt_manager.manager import reset_manager


runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_manager_fixture():
    """Reset the manager before each test."""
    reset_manager()
    yield
    reset_manager()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep tables from wrapping in captured output."""
    monkeypatch.setattr(console, "width", 200)


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "store"


@pytest.fixture
def invoke(data_dir):
    """Run the CLI against a temporary store."""
    def _invoke(*args):
        return runner.invoke(app, ["--data-dir", str(data_dir), *args])
    return _invoke


@pytest.fixture
def content_file(tmp_path):
    def _write(text, name="prompt.txt"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


def created_id(result):
    for line in result.output.splitlines():
        if line.startswith("ID: "):
            return line[len("ID: "):].strip()
    raise AssertionError(f"No ID in output:\n{result.output}")


@pytest.fixture
def prompt_id(invoke, content_file):
    """Create a prompt through the CLI and return its id."""
    result = invoke(
        "create",
        "--name", "My Prompt",
        "--file", str(content_file("Line 1\nLine 2\nLine 3")),
    )
    assert result.exit_code == 0, result.output
    return created_id(result)


class TestCreate:
    """Tests for the create command."""

    def test_create(self, invoke, content_file, data_dir):
        """Test creating a prompt writes the store."""
        result = invoke(
            "create",
            "-n", "Greeting",
            "-f", str(content_file("Hello {name}")),
            "-m", "First draft",
            "-t", "greeting",
            "-t", "demo",
        )
        assert result.exit_code == 0, result.output
        assert "Prompt created successfully" in result.output
        assert "Version: 1" in result.output

        new_id = created_id(result)
        record = json.loads((data_dir / "prompts" / f"{new_id}.json").read_text(encoding="utf-8"))
        assert record["name"] == "Greeting"
        assert record["tags"] == ["greeting", "demo"]

        version = json.loads((data_dir / "versions" / new_id / "v1.json").read_text(encoding="utf-8"))
        assert version["content"] == "Hello {name}"
        assert version["changeDescription"] == "First draft"

    def test_create_yaml(self, invoke, content_file, data_dir):
        """Test --format yaml writes YAML records."""
        result = invoke("--format", "yaml", "create", "-n", "Y", "-f", str(content_file("y")))
        assert result.exit_code == 0, result.output
        assert (data_dir / "prompts" / f"{created_id(result)}.yaml").exists()

    def test_create_requires_name(self, invoke, content_file):
        """Test a missing name is an error."""
        result = invoke("create", "--file", str(content_file("x")))
        assert result.exit_code == 1
        assert "Prompt name is required" in result.output

    def test_create_requires_file(self, invoke):
        """Test a missing content file is an error."""
        result = invoke("create", "--name", "x")
        assert result.exit_code == 1
        assert "Content file is required" in result.output

    def test_create_unreadable_file(self, invoke, tmp_path):
        """Test a content file that does not exist is an error."""
        result = invoke("create", "--name", "x", "--file", str(tmp_path / "missing.txt"))
        assert result.exit_code == 1
        assert "Could not read content file" in result.output

    def test_create_file_not_utf8(self, invoke, tmp_path):
        """Test content that is not valid UTF-8 is reported, not raised."""
        path = tmp_path / "bad.txt"
        path.write_bytes(b"\xff\xfe bad")
        result = invoke("create", "--name", "x", "--file", str(path))
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "Error:" in result.output
        assert "Could not read content file" in result.output


class TestUpdate:
    """Tests for the update command."""

    def test_update_content(self, invoke, content_file, prompt_id):
        """Test new content produces version 2."""
        result = invoke("update", prompt_id, "-f", str(content_file("changed", "new.txt")))
        assert result.exit_code == 0, result.output
        assert "Version: 2" in result.output

    def test_update_name_only(self, invoke, prompt_id):
        """Test renaming keeps the current version."""
        result = invoke("update", prompt_id, "--name", "Renamed")
        assert result.exit_code == 0, result.output
        assert "Version: 1" in result.output

        result = invoke("get", prompt_id)
        assert "Renamed" in result.output

    def test_update_unknown(self, invoke):
        """Test updating an unknown prompt fails."""
        result = invoke("update", "missing", "--name", "x")
        assert result.exit_code == 1
        assert "Prompt not found" in result.output

    def test_update_requires_id(self, invoke):
        """Test the prompt id is required."""
        result = invoke("update")
        assert result.exit_code == 1
        assert "Prompt ID is required" in result.output

    def test_update_file_not_utf8(self, invoke, tmp_path, prompt_id):
        """Test an undecodable content file leaves the prompt at version 1."""
        path = tmp_path / "bad.txt"
        path.write_bytes(b"\xff\xfe")
        result = invoke("update", prompt_id, "--file", str(path))
        assert result.exit_code == 1
        assert "Error:" in result.output

        result = invoke("get", prompt_id)
        assert "Current Version: 1" in result.output

    def test_update_path_like_id(self, invoke):
        """Test an id that looks like a path is simply not found."""
        result = invoke("update", "../../etc/passwd", "--name", "x")
        assert result.exit_code == 1
        assert "Prompt not found" in result.output


class TestRead:
    """Tests for get, list, versions and show."""

    def test_get(self, invoke, prompt_id):
        """Test get prints the prompt and its content."""
        result = invoke("get", prompt_id)
        assert result.exit_code == 0, result.output
        assert "My Prompt" in result.output
        assert "Current Version: 1" in result.output
        assert "Line 2" in result.output
        assert "Version History" not in result.output

    def test_get_verbose(self, invoke, content_file, prompt_id):
        """Test --verbose adds the version history."""
        invoke("update", prompt_id, "-f", str(content_file("v2", "v2.txt")), "-m", "Second")
        result = invoke("get", prompt_id, "--verbose")
        assert result.exit_code == 0, result.output
        assert "Version History" in result.output
        assert "(Initial version)" in result.output
        assert "(Second)" in result.output

    def test_get_unknown(self, invoke):
        """Test get on an unknown prompt fails."""
        result = invoke("get", "missing")
        assert result.exit_code == 1
        assert "Prompt not found" in result.output

    def test_content_with_brackets(self, invoke, content_file):
        """Test content is printed verbatim, not as rich markup."""
        result = invoke("create", "-n", "Inst", "-f", str(content_file("[INST] hi [/INST]")))
        result = invoke("get", created_id(result))
        assert "[INST] hi [/INST]" in result.output

    def test_list_empty(self, invoke):
        """Test list on an empty store."""
        result = invoke("list")
        assert result.exit_code == 0
        assert "No prompts found" in result.output

    def test_list(self, invoke, prompt_id):
        """Test list shows created prompts."""
        result = invoke("list")
        assert result.exit_code == 0, result.output
        assert "My Prompt" in result.output

    def test_versions(self, invoke, content_file, prompt_id):
        """Test versions lists each version."""
        invoke("update", prompt_id, "-f", str(content_file("v2", "v2.txt")))
        result = invoke("versions", prompt_id)
        assert result.exit_code == 0, result.output
        assert "v1" in result.output
        assert "v2" in result.output

    def test_versions_unknown(self, invoke):
        """Test versions of an unknown prompt is not an error."""
        result = invoke("versions", "missing")
        assert result.exit_code == 0
        assert "No versions found" in result.output

    def test_show(self, invoke, content_file, prompt_id):
        """Test show prints the content of one version."""
        invoke("update", prompt_id, "-f", str(content_file("second version", "v2.txt")))
        result = invoke("show", prompt_id, "v1")
        assert result.exit_code == 0, result.output
        assert "Line 1" in result.output
        assert "second version" not in result.output

    def test_show_unknown(self, invoke, prompt_id):
        """Test show with an unknown version fails."""
        result = invoke("show", prompt_id, "v7")
        assert result.exit_code == 1
        assert "Version not found" in result.output


class TestCompare:
    """Tests for the compare command."""

    def test_compare(self, invoke, content_file, prompt_id):
        """Test compare reports added and modified lines."""
        invoke("update", prompt_id, "-f", str(content_file("Line 1 modified\nLine 2\nLine 3\nLine 4", "v2.txt")))
        result = invoke("compare", prompt_id, "v1", "V2")
        assert result.exit_code == 0, result.output
        assert "Comparing v1 → v2" in result.output
        assert "+ Line 4: Line 4" in result.output
        assert '~ Line 1: "Line 1" → "Line 1 modified"' in result.output
        assert "Removed" not in result.output

    def test_compare_same_version(self, invoke, prompt_id):
        """Test comparing a version with itself."""
        result = invoke("compare", prompt_id, "v1", "v1")
        assert result.exit_code == 0, result.output
        assert "No differences" in result.output

    def test_compare_unknown_version(self, invoke, prompt_id):
        """Test an unknown reference fails."""
        result = invoke("compare", prompt_id, "v99", "v1")
        assert result.exit_code == 1
        assert "Could not compare versions" in result.output

    def test_compare_missing_arguments(self, invoke, prompt_id):
        """Test compare needs two references."""
        result = invoke("compare", prompt_id, "v1")
        assert result.exit_code == 1
        assert "two version references are required" in result.output


class TestRevert:
    """Tests for the revert command."""

    def test_revert(self, invoke, content_file, prompt_id):
        """Test revert records the old content as a new version."""
        invoke("update", prompt_id, "-f", str(content_file("second", "v2.txt")))
        invoke("update", prompt_id, "-f", str(content_file("third", "v3.txt")))

        result = invoke("revert", prompt_id, "v1")
        assert result.exit_code == 0, result.output
        assert "Reverted successfully" in result.output
        assert "New version: 4" in result.output

        result = invoke("show", prompt_id, "v4")
        assert "Line 1" in result.output
        assert "Reverted to version 1" in result.output

    def test_revert_unknown(self, invoke, prompt_id):
        """Test reverting to an unknown version fails."""
        result = invoke("revert", prompt_id, "v5")
        assert result.exit_code == 1
        assert "Could not revert to version" in result.output

    def test_revert_requires_reference(self, invoke, prompt_id):
        """Test revert needs a version reference."""
        result = invoke("revert", prompt_id)
        assert result.exit_code == 1


class TestGlobalOptions:
    """Tests for options shared by every command."""

    def test_unknown_format(self, invoke):
        """Test an unknown record format fails."""
        result = invoke("--format", "xml", "list")
        assert result.exit_code == 1
        assert "Unknown record format" in result.output

    def test_data_dir_from_environment(self, tmp_path, content_file, monkeypatch):
        """Test PROMPT_MANAGER_HOME selects the store."""
        monkeypatch.setenv("PROMPT_MANAGER_HOME", str(tmp_path / "env-store"))
        result = runner.invoke(app, ["create", "-n", "Env", "-f", str(content_file("x"))])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "env-store" / "prompts" / f"{created_id(result)}.json").exists()
