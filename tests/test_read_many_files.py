import asyncio
from pathlib import Path

import pytest

from agentshell.core.context import RunContext
from agentshell.errors import OperationCancelled, ToolInputError
from agentshell.tools import read_many_files
from agentshell.tools.read_many_files import ReadManyFilesTool


def _read(tool, args, ctx=None):
    return asyncio.run(tool.execute(ctx or RunContext(), args))["content"]


@pytest.fixture()
def tool(project_root: Path):
    return ReadManyFilesTool(project_root)


def test_text_missing_and_directory_in_request_order(tool, project_root):
    (project_root / "a.txt").write_text("alpha")
    (project_root / "sub").mkdir()

    content = _read(tool, {"paths": ["a.txt", "missing.txt", "sub"]})

    assert content == (
        f"---{project_root / 'a.txt'} --- alpha\n"
        f"---{project_root / 'missing.txt'} (Not Found)---\n"
        f"---{project_root / 'sub'} (Directory)---\n"
    )


def test_nul_byte_means_binary_whatever_the_extension(tool, project_root):
    (project_root / "notes.txt").write_bytes(b"abc\x00def")

    content = _read(tool, {"paths": ["notes.txt"]})

    assert content == f"---{project_root / 'notes.txt'} (Binary File, content not included)---\n"


def test_glob_and_literal_are_deduplicated(tool, project_root):
    (project_root / "a.txt").write_text("A")
    (project_root / "b.txt").write_text("B")

    content = _read(tool, {"paths": ["*.txt", "a.txt", "b.txt"]})

    assert content == (
        f"---{project_root / 'a.txt'} --- A\n"
        f"---{project_root / 'b.txt'} --- B\n"
    )


def test_recursive_glob(tool, project_root):
    (project_root / "pkg").mkdir()
    (project_root / "pkg" / "mod.py").write_text("x = 1")
    (project_root / "top.py").write_text("y = 2")
    (project_root / "readme.md").write_text("no")

    content = _read(tool, {"paths": ["**/*.py"]})

    assert content.index("mod.py") < content.index("top.py")
    assert "x = 1" in content and "y = 2" in content
    assert "readme.md" not in content


def test_glob_without_matches_reads_nothing(tool):
    assert _read(tool, {"paths": ["*.nothing"]}) == ""


def test_leading_slash_resolves_under_root(tool, project_root):
    (project_root / "a.txt").write_text("alpha")

    content = _read(tool, {"paths": ["/a.txt"]})

    assert content == f"---{project_root / 'a.txt'} --- alpha\n"


def test_invalid_utf8_is_replaced(tool, project_root):
    (project_root / "latin.txt").write_bytes(b"caf\xe9")

    content = _read(tool, {"paths": ["latin.txt"]})

    assert content.endswith("caf�\n")


def test_advisory_options_are_ignored(tool, project_root):
    (project_root / "a.log").write_text("kept")

    content = _read(tool, {"paths": ["a.log"], "exclude": ["*.log"], "useDefaultExcludes": True})

    assert "kept" in content


@pytest.mark.parametrize("args", [{}, {"paths": "a.txt"}, {"paths": ["a.txt", 3]}])
def test_invalid_paths_argument(tool, args):
    with pytest.raises(ToolInputError):
        _read(tool, args)


def test_cancelled_context_stops_before_reading(tool, project_root):
    (project_root / "a.txt").write_text("alpha")
    ctx = RunContext()
    ctx.cancel()

    with pytest.raises(OperationCancelled):
        _read(tool, {"paths": ["a.txt"]}, ctx)


def test_star_matches_hidden_files(tool, project_root):
    (project_root / ".env").write_text("SECRET=1")
    (project_root / "a.txt").write_text("A")

    content = _read(tool, {"paths": ["*"]})

    assert content == (
        f"---{project_root / '.env'} --- SECRET=1\n"
        f"---{project_root / 'a.txt'} --- A\n"
    )


def test_read_failure_becomes_marker_and_reading_goes_on(tool, project_root, monkeypatch):
    (project_root / "locked.txt").write_text("hidden")
    (project_root / "b.txt").write_text("B")
    original = read_many_files._read_bytes

    def fake_read(path):
        if path.name == "locked.txt":
            raise PermissionError("Permission denied")
        return original(path)

    monkeypatch.setattr(read_many_files, "_read_bytes", fake_read)

    content = _read(tool, {"paths": ["locked.txt", "b.txt"]})

    assert content == (
        f"---{project_root / 'locked.txt'} (Error reading: Permission denied)---\n"
        f"---{project_root / 'b.txt'} --- B\n"
    )


def test_stat_failure_becomes_marker_and_reading_goes_on(tool, project_root, monkeypatch):
    (project_root / "loop.txt").write_text("x")
    (project_root / "b.txt").write_text("B")
    original = Path.stat

    def fake_stat(self, *args, **kwargs):
        if self.name == "loop.txt":
            raise OSError("Too many levels of symbolic links")
        return original(self, *args, **kwargs)

    monkeypatch.setattr(Path, "stat", fake_stat)

    content = _read(tool, {"paths": ["loop.txt", "b.txt"]})

    assert content == (
        f"---{project_root / 'loop.txt'} (Error: Too many levels of symbolic links)---\n"
        f"---{project_root / 'b.txt'} --- B\n"
    )
