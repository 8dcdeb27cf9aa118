"""Tests for the rat CLI."""

import json
from pathlib import Path

import pytest

from rat import Nest
from rat.cli import main


def _commit(runner, wt, message):
    result = runner.invoke(main, ["-C", wt, "commit", "-m", message])
    assert result.exit_code == 0, result.output
    line = result.output.strip().splitlines()[-1]
    assert line.startswith("Created commit ")
    return line[len("Created commit "):].rstrip(".")


@pytest.fixture
def cli_history(runner, initialized_work_tree):
    wt = initialized_work_tree
    (Path(wt) / "a.txt").write_text("hi")
    h1 = _commit(runner, wt, "first")
    (Path(wt) / "a.txt").write_text("bye")
    h2 = _commit(runner, wt, "second")
    return wt, h1, h2


class TestInit:
    def test_init(self, runner, work_tree):
        result = runner.invoke(main, ["-C", str(work_tree), "init"])
        assert result.exit_code == 0, result.output
        assert "Initialized" in result.output
        assert (work_tree / ".rat" / "HEAD").read_text() == "ref: refs/heads/main"

    def test_init_branch(self, runner, work_tree):
        result = runner.invoke(main, ["-C", str(work_tree), "init", "-b", "trunk"])
        assert result.exit_code == 0, result.output
        assert (work_tree / ".rat" / "HEAD").read_text() == "ref: refs/heads/trunk"

    def test_init_twice(self, runner, initialized_work_tree):
        result = runner.invoke(main, ["-C", initialized_work_tree, "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_nest_option_and_envvar(self, runner, work_tree, tmp_path):
        store = tmp_path / "store"
        result = runner.invoke(main, ["init"], env={
            "RAT_WORK_TREE": str(work_tree), "RAT_NEST": str(store),
        })
        assert result.exit_code == 0, result.output
        assert (store / "HEAD").is_file()
        assert not (work_tree / ".rat").exists()


class TestCommit:
    def test_commit_message(self, runner, initialized_work_tree):
        (Path(initialized_work_tree) / "a.txt").write_text("hi")
        h = _commit(runner, initialized_work_tree, "first")
        assert len(h) == 64
        nest = Nest.open(initialized_work_tree)
        assert nest.head_commit() == h

    def test_blank_message_cancels(self, runner, initialized_work_tree):
        result = runner.invoke(main, ["-C", initialized_work_tree, "commit", "-m", "   "])
        assert result.exit_code == 1
        assert "Cancelled commit." in result.output
        assert Nest.open(initialized_work_tree).head_commit() is None

    def test_missing_message_value(self, runner, initialized_work_tree):
        result = runner.invoke(main, ["-C", initialized_work_tree, "commit", "-m"])
        assert result.exit_code == 2

    def test_editor_message(self, runner, initialized_work_tree, monkeypatch):
        def fake_edit(filename=None, editor=None, **kwargs):
            assert editor == "my-editor"
            Path(filename).write_text("from editor\n")

        monkeypatch.setenv("EDITOR", "my-editor")
        monkeypatch.setattr("rat.cli._editor.click.edit", fake_edit)
        result = runner.invoke(main, ["-C", initialized_work_tree, "commit"])
        assert result.exit_code == 0, result.output
        assert Nest.open(initialized_work_tree).log()[0].message == "from editor\n"

    def test_visual_fallback(self, runner, initialized_work_tree, monkeypatch):
        seen = {}

        def fake_edit(filename=None, editor=None, **kwargs):
            seen["editor"] = editor
            Path(filename).write_text("msg")

        monkeypatch.delenv("EDITOR", raising=False)
        monkeypatch.setenv("VISUAL", "visual-editor")
        monkeypatch.setattr("rat.cli._editor.click.edit", fake_edit)
        result = runner.invoke(main, ["-C", initialized_work_tree, "commit"])
        assert result.exit_code == 0, result.output
        assert seen["editor"] == "visual-editor"

    def test_editor_left_blank(self, runner, initialized_work_tree, monkeypatch):
        monkeypatch.setenv("EDITOR", "my-editor")
        monkeypatch.setattr("rat.cli._editor.click.edit", lambda **kwargs: None)
        result = runner.invoke(main, ["-C", initialized_work_tree, "commit"])
        assert result.exit_code == 1
        assert "Cancelled commit." in result.output

    def test_no_editor(self, runner, initialized_work_tree, monkeypatch):
        monkeypatch.delenv("EDITOR", raising=False)
        monkeypatch.delenv("VISUAL", raising=False)
        result = runner.invoke(main, ["-C", initialized_work_tree, "commit"])
        assert result.exit_code == 1
        assert "No editor set" in result.output

    def test_not_a_nest(self, runner, work_tree):
        result = runner.invoke(main, ["-C", str(work_tree), "commit", "-m", "x"])
        assert result.exit_code == 1
        assert "Not a rat nest" in result.output


class TestLog:
    def test_empty(self, runner, initialized_work_tree):
        result = runner.invoke(main, ["-C", initialized_work_tree, "log"])
        assert result.exit_code == 0
        assert result.output == ""

    def test_text(self, runner, cli_history):
        wt, h1, h2 = cli_history
        result = runner.invoke(main, ["-C", wt, "log", "--no-color"])
        assert result.exit_code == 0, result.output
        assert result.output == (
            f"commit {h2} (main)\n"
            f"    second\n"
            f"\n"
            f"commit {h1}\n"
            f"    first\n"
        )

    def test_color(self, runner, cli_history):
        wt, _, h2 = cli_history
        result = runner.invoke(main, ["-C", wt, "log", "--color"])
        assert result.exit_code == 0
        assert "\x1b[33m" in result.output
        assert "\x1b[32m" in result.output

    def test_json(self, runner, cli_history):
        wt, h1, h2 = cli_history
        result = runner.invoke(main, ["-C", wt, "log", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [d["hash"] for d in data] == [h2, h1]
        assert data[0] == {"hash": h2, "parent": h1, "message": "second", "branches": ["main"]}

    def test_jsonl(self, runner, cli_history):
        wt, h1, h2 = cli_history
        result = runner.invoke(main, ["-C", wt, "log", "--format", "jsonl"])
        lines = result.output.strip().splitlines()
        assert [json.loads(line)["hash"] for line in lines] == [h2, h1]

    def test_corrupt(self, runner, cli_history):
        wt, h1, _ = cli_history
        (Path(wt) / ".rat" / "commits" / h1).unlink()
        result = runner.invoke(main, ["-C", wt, "log"])
        assert result.exit_code == 1
        assert "not stored" in result.output


class TestBranch:
    def test_create_then_duplicate(self, runner, cli_history):
        wt, h1, h2 = cli_history
        result = runner.invoke(main, ["-C", wt, "branch", "feature", h1])
        assert result.exit_code == 0, result.output
        assert "Created branch feature." in result.output

        result = runner.invoke(main, ["-C", wt, "branch", "feature", h2])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert (Path(wt) / ".rat" / "refs" / "heads" / "feature").read_text() == h1

    def test_list(self, runner, cli_history):
        wt, h1, h2 = cli_history
        runner.invoke(main, ["-C", wt, "branch", "feature", h1])
        result = runner.invoke(main, ["-C", wt, "branch"])
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            f"  feature  {h1}",
            f"* main  {h2}",
        ]

    def test_invalid_name(self, runner, cli_history):
        wt, h1, _ = cli_history
        result = runner.invoke(main, ["-C", wt, "branch", "a/b", h1])
        assert result.exit_code == 1
        assert "Invalid branch name" in result.output

    def test_unknown_hash(self, runner, cli_history):
        wt, _, _ = cli_history
        result = runner.invoke(main, ["-C", wt, "branch", "feature", "0" * 64])
        assert result.exit_code == 1
        assert "Unknown commit" in result.output


class TestCheckout:
    def test_checkout_hash(self, runner, cli_history):
        wt, h1, _ = cli_history
        result = runner.invoke(main, ["-C", wt, "checkout", h1])
        assert result.exit_code == 0, result.output
        assert f"Checked out commit {h1}." in result.output
        assert (Path(wt) / "a.txt").read_text() == "hi"
        assert (Path(wt) / ".rat" / "HEAD").read_text() == h1

    def test_checkout_missing_argument(self, runner, cli_history):
        wt, _, _ = cli_history
        result = runner.invoke(main, ["-C", wt, "checkout"])
        assert result.exit_code == 2

    def test_verbose_reports_head(self, runner, cli_history):
        wt, _, h2 = cli_history
        result = runner.invoke(main, ["-C", wt, "-v", "checkout", "main"])
        assert result.exit_code == 0, result.output
        assert "HEAD is now ref: refs/heads/main" in result.output


class TestUsage:
    def test_unknown_subcommand(self, runner, initialized_work_tree):
        result = runner.invoke(main, ["-C", initialized_work_tree, "frobnicate"])
        assert result.exit_code == 2

    def test_no_subcommand(self, runner):
        result = runner.invoke(main, [])
        assert result.exit_code == 2
        assert "Missing command" in result.output

    def test_help_still_exits_zero(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output
