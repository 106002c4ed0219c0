"""Unit tests for CLI commands."""

import json

import pytest
import typer
from typer.testing import CliRunner

from resourcedb.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(mocker):
    """Keep CLI runs from reconfiguring loguru onto the runner's streams."""
    return mocker.patch("resourcedb.cli.configure_logging")


@pytest.fixture
def db_args(tmp_path) -> list[str]:
    return ["--database", str(tmp_path / "cli.db")]


def invoke(*args: str):
    result = runner.invoke(app, list(args))
    if result.exit_code != 0:
        print(f"stdout: {result.stdout}")
        if result.exception:
            print(f"exception: {result.exception}")
    return result


def add_resource(db_args, topic="python", description="Docs", keywords="py,ref"):
    result = invoke(
        "add", topic,
        "-D", description,
        "-k", keywords,
        "-l", "https://docs.python.org",
        "--created-at", "1700000000000",
        "--json",
        *db_args,
    )
    assert result.exit_code == 0
    return json.loads(result.stdout)[0]


class TestStoreCommands:
    """Tests for init and status."""

    def test_cli_app_exists(self):
        assert isinstance(app, typer.Typer)

    def test_init_command(self, tmp_path, db_args):
        result = invoke("init", *db_args)

        assert result.exit_code == 0
        assert "Store created" in result.stdout
        assert (tmp_path / "cli.db").exists()

    def test_init_twice(self, db_args):
        invoke("init", *db_args)
        result = invoke("init", *db_args)

        assert result.exit_code == 0
        assert "already exists" in result.stdout

    def test_status_command(self, db_args):
        invoke("create-topic", "python", *db_args)
        add_resource(db_args)

        result = invoke("status", *db_args)

        assert result.exit_code == 0
        assert "python" in result.stdout

    def test_verbose_flag_configures_debug(self, db_args, quiet_logging):
        invoke("topics", "--verbose", *db_args)
        quiet_logging.assert_called_once_with(True)


class TestTopicCommands:
    """Tests for topic management commands."""

    def test_create_and_list_topics(self, db_args):
        result = invoke("create-topic", "node.js", *db_args)
        assert result.exit_code == 0
        assert "node.js" in result.stdout

        result = invoke("topics", *db_args)
        assert result.exit_code == 0
        assert "node.js" in result.stdout

    def test_create_duplicate_fails(self, db_args):
        invoke("create-topic", "python", *db_args)
        result = invoke("create-topic", "python", *db_args)

        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_reserved_topic_fails(self, db_args):
        result = invoke("create-topic", "$where", *db_args)
        assert result.exit_code == 1

    def test_rename_topic(self, db_args):
        invoke("create-topic", "python", *db_args)
        result = invoke("rename-topic", "python", "py", *db_args)

        assert result.exit_code == 0
        assert "py" in invoke("topics", *db_args).stdout

    def test_drop_topic(self, db_args):
        invoke("create-topic", "python", *db_args)
        result = invoke("drop-topic", "python", "--yes", *db_args)

        assert result.exit_code == 0
        assert "python" not in invoke("topics", *db_args).stdout

    def test_drop_topic_aborted(self, db_args):
        invoke("create-topic", "python", *db_args)
        result = runner.invoke(app, ["drop-topic", "python", *db_args], input="n\n")

        assert result.exit_code != 0
        assert "python" in invoke("topics", *db_args).stdout

    def test_drop_missing_topic_fails(self, db_args):
        result = invoke("drop-topic", "missing", "--yes", *db_args)
        assert result.exit_code == 1


class TestResourceCommands:
    """Tests for resource commands."""

    def test_add_and_list(self, db_args):
        invoke("create-topic", "python", *db_args)
        added = add_resource(db_args)

        assert added["keywords"] == ["py", "ref"]
        assert added["createdAt"] == 1700000000000

        result = invoke("list", "python", "--json", *db_args)
        assert result.exit_code == 0
        assert json.loads(result.stdout) == [added]

    def test_add_to_missing_topic_fails(self, db_args):
        result = invoke(
            "add", "missing", "-D", "d", "-k", "k", "-l", "https://x.org", *db_args
        )
        assert result.exit_code == 1
        assert "failed" in result.stdout

    def test_add_invalid_link_fails(self, db_args):
        invoke("create-topic", "python", *db_args)
        result = invoke("add", "python", "-D", "d", "-k", "k", "-l", "nope", *db_args)
        assert result.exit_code == 1

    def test_update_keeps_omitted_fields(self, db_args):
        invoke("create-topic", "python", *db_args)
        added = add_resource(db_args)

        result = invoke("update", "python", added["id"], "-D", "New", "--json", *db_args)

        assert result.exit_code == 0
        updated = json.loads(result.stdout)[0]
        assert updated["description"] == "New"
        assert updated["keywords"] == added["keywords"]
        assert updated["link"] == added["link"]

    def test_update_missing_resource_fails(self, db_args):
        invoke("create-topic", "python", *db_args)
        result = invoke("update", "python", "nope", "-D", "x", *db_args)
        assert result.exit_code == 1

    def test_pin_unpin(self, db_args):
        invoke("create-topic", "python", *db_args)
        added = add_resource(db_args)

        assert invoke("pin", "python", added["id"], *db_args).exit_code == 0
        listed = json.loads(invoke("list", "python", "--json", *db_args).stdout)
        assert listed[0]["isPinned"] is True

        assert invoke("unpin", "python", added["id"], *db_args).exit_code == 0
        listed = json.loads(invoke("list", "python", "--json", *db_args).stdout)
        assert "isPinned" not in listed[0]

    def test_move(self, db_args):
        invoke("create-topic", "python", *db_args)
        invoke("create-topic", "rust", *db_args)
        added = add_resource(db_args)
        invoke("pin", "python", added["id"], *db_args)

        result = invoke("move", "python", "rust", added["id"], "--json", *db_args)

        assert result.exit_code == 0
        moved = json.loads(result.stdout)[0]
        assert moved["id"] != added["id"]
        assert moved["isPinned"] is True
        assert moved["description"] == added["description"]
        assert json.loads(invoke("list", "python", "--json", *db_args).stdout) == []

    def test_delete(self, db_args):
        invoke("create-topic", "python", *db_args)
        added = add_resource(db_args)

        result = invoke("delete", "python", added["id"], "--json", *db_args)

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [added]
        assert json.loads(invoke("list", "python", "--json", *db_args).stdout) == []


class TestReconcileCommand:
    def test_reconcile_consistent(self, db_args):
        invoke("create-topic", "python", *db_args)
        added = add_resource(db_args)
        invoke("pin", "python", added["id"], *db_args)

        result = invoke("reconcile", *db_args)

        assert result.exit_code == 0
        assert "consistent" in result.stdout

    def test_reconcile_missing_topic_fails(self, db_args):
        result = invoke("reconcile", "missing", *db_args)
        assert result.exit_code == 1
