"""Shared fixtures for rat tests."""

import pytest
from click.testing import CliRunner

from rat import Nest
from rat.cli import main


@pytest.fixture
def work_tree(tmp_path):
    """An empty working directory."""
    p = tmp_path / "work"
    p.mkdir()
    return p


@pytest.fixture
def nest(work_tree):
    """A freshly initialized nest inside *work_tree*."""
    return Nest.init(work_tree)


@pytest.fixture
def nest_with_history(nest, work_tree):
    """Nest with two commits on main: a.txt = 'hi' then a.txt = 'bye'."""
    (work_tree / "a.txt").write_text("hi")
    h1 = nest.commit("first")
    (work_tree / "a.txt").write_text("bye")
    h2 = nest.commit("second")
    return nest, h1, h2


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def initialized_work_tree(work_tree, runner):
    """Work tree with a nest created through the CLI; returns its path as str."""
    p = str(work_tree)
    result = runner.invoke(main, ["-C", p, "init"])
    assert result.exit_code == 0, result.output
    return p
