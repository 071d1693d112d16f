"""Tests for the merge pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from reltool.core.result import Err, Ok
from reltool.output.console import MockConsole
from reltool.platform.detection import is_windows
from reltool.platform.process import RecordingRunner
from reltool.release.errors import (
    ChangelogSectionMissing,
    CommandFailed,
    InvalidSourceBranch,
    MissingDependency,
    VersionNotUpdated,
    WorkingTreeDirty,
)
from reltool.release.merge import MERGE_TOOLS, run_merge
from reltool.release.params import MergeParams
from reltool.release.session import Session

from ._project import VERSION, make_session, write_project

pytestmark = pytest.mark.skipif(is_windows(), reason="uses POSIX executable bits")

NOTES = "- Fixed crash on startup [#123]\n- Improved search"


def _setup(
    tmp_path: Path, *, branch: str = "release/2.7.4", tools: tuple[str, ...] = MERGE_TOOLS
) -> tuple[Session, RecordingRunner]:
    session, runner, _ = make_session(tmp_path, tools=tools, branch=branch)
    write_project(session.source_dir)
    return session, runner


def _params(session: Session, **kwargs: str) -> MergeParams:
    result = MergeParams.create(version=VERSION, source_dir=session.source_dir, **kwargs)
    assert isinstance(result, Ok)
    return result.value


def _mutations(runner: RecordingRunner) -> list[tuple[str, ...]]:
    return [c.argv for c in runner.calls if not c.captured]


def _assert_restored(session: Session, runner: RecordingRunner, tmp_path: Path, ref: str) -> None:
    assert session.cwd == tmp_path
    last = runner.calls[-1]
    assert last.argv == ("git", "checkout", ref)
    assert last.quiet is True


class TestHappyPath:
    def test_step_order(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)

        result = run_merge(session, _params(session))

        assert result == Ok(None)
        mutations = _mutations(runner)
        assert mutations[0][0] == "lupdate"
        assert mutations[0][-2:] == ("-ts", "share/translations/demo_en.ts")
        assert mutations[1:] == [
            ("tx", "pull", "-af", "--minimum-perc=60", "--parallel"),
            ("git", "checkout", "master"),
            ("git", "merge", "release/2.7.4", "--no-ff", "-m", "Release 2.7.4", "-m", NOTES, "-S"),
            ("git", "tag", "-a", "2.7.4", "-m", "Release 2.7.4", "-m", NOTES, "-s"),
        ]

    def test_commands_run_in_source_dir(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)

        run_merge(session, _params(session))

        assert runner.find("lupdate")[0].cwd == session.source_dir
        assert runner.find("tx")[0].cwd == session.source_dir

    def test_no_translation_commit_without_changes(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)

        run_merge(session, _params(session))

        assert runner.find("git", "commit") == []
        assert runner.find("git", "add") == []

    def test_untracked_files_elsewhere_do_not_commit(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)
        runner.script("git", "status", "--porcelain", stdout="?? release/\n")
        runner.script("git", "status", "--porcelain", "--", "share/translations", stdout="")

        assert run_merge(session, _params(session)) == Ok(None)

        assert runner.find("git", "status", "--porcelain", "--", "share/translations")
        assert runner.find("git", "add") == []
        assert runner.find("git", "commit") == []

    def test_translation_changes_committed(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)
        runner.script("git", "status", "--porcelain", stdout=" M share/translations/demo_de.ts\n")

        assert run_merge(session, _params(session)) == Ok(None)

        mutations = _mutations(runner)
        add = mutations.index(("git", "add", "-A", "share/translations"))
        commit = mutations.index(("git", "commit", "-m", "Update translations"))
        checkout = mutations.index(("git", "checkout", "master"))
        assert mutations[add - 1][0] == "tx"
        assert add < commit < checkout

    def test_explicit_branches(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path, branch="develop")

        params = _params(session, source_branch="release/2.7.x", target_branch="main")
        assert run_merge(session, params) == Ok(None)

        assert runner.find("git", "checkout", "main")
        assert runner.find("git", "merge", "release/2.7.x")

    def test_follow_up_hint(self, tmp_path: Path) -> None:
        session, _ = _setup(tmp_path)

        run_merge(session, _params(session))

        assert isinstance(session.console, MockConsole)
        assert session.console.find("back into the develop branch")
        assert session.console.find("git push --tags")


class TestFailures:
    def test_missing_dependency_before_anything(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path, tools=("git", "tx"))

        result = run_merge(session, _params(session))

        assert result == Err(MissingDependency(tool="lupdate"))
        assert runner.find("lupdate") == []
        assert runner.find("git", "diff-index") == []
        _assert_restored(session, runner, tmp_path, "release/2.7.4")

    def test_version_not_updated(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)
        (session.source_dir / "snap/snapcraft.yaml").write_text("version: 2.7.3\n")

        result = run_merge(session, _params(session))

        assert result == Err(VersionNotUpdated(file="snap/snapcraft.yaml"))
        assert runner.find("lupdate") == []
        _assert_restored(session, runner, tmp_path, "release/2.7.4")

    def test_dirty_tree(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)
        runner.script("git", "diff-index", returncode=1)

        result = run_merge(session, _params(session))

        assert result == Err(WorkingTreeDirty(path=session.source_dir))
        assert runner.find("lupdate") == []

    @pytest.mark.parametrize("branch", ["feature/x", "master"])
    def test_branch_guard(self, tmp_path: Path, branch: str) -> None:
        session, runner = _setup(tmp_path, branch=branch)

        result = run_merge(session, _params(session))

        assert result == Err(InvalidSourceBranch(branch=branch))
        assert runner.find("lupdate") == []
        _assert_restored(session, runner, tmp_path, branch)

    def test_detached_head_is_not_a_release_branch(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path, branch="HEAD")
        runner.script("git", "rev-parse", "HEAD", stdout="cafebabe\n")

        result = run_merge(session, _params(session))

        assert result == Err(InvalidSourceBranch(branch="HEAD"))
        _assert_restored(session, runner, tmp_path, "cafebabe")

    def test_missing_changelog_section(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)
        # Markers pass; the changelog changes before the notes are read.
        runner.script("tx", effect=lambda cwd: (cwd / "CHANGELOG.md").write_text("gone\n"))

        result = run_merge(session, _params(session))

        assert result == Err(ChangelogSectionMissing(version="2.7.4", file="CHANGELOG.md"))
        assert runner.find("git", "merge") == []

    def test_merge_failure_skips_tag_and_restores(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)
        runner.script("git", "merge", returncode=1)

        result = run_merge(session, _params(session))

        assert result == Err(CommandFailed(program="git", returncode=1))
        assert runner.find("git", "tag") == []
        _assert_restored(session, runner, tmp_path, "release/2.7.4")
        assert isinstance(session.console, MockConsole)
        assert session.console.find("Restoring original state")

    def test_translation_commit_not_rolled_back(self, tmp_path: Path) -> None:
        session, runner = _setup(tmp_path)
        runner.script("git", "status", "--porcelain", stdout=" M x.ts\n")
        runner.script("git", "tag", returncode=1)

        assert isinstance(run_merge(session, _params(session)), Err)

        assert runner.find("git", "commit")
        assert runner.find("git", "reset") == []
        assert runner.find("git", "revert") == []
