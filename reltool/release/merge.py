"""Merge mode: turn a prepared release branch into a signed release tag.

The release branch (``release/*`` or ``develop``) gets a final translation
refresh, is merged into the target branch with a signed merge commit, and
the merge is tagged with a signed annotated tag. Both messages read
``Release <version>`` followed by the version's changelog section.
"""

from __future__ import annotations

from reltool.core.result import Err, Ok, Result
from reltool.release.changelog import read_release_notes
from reltool.release.checks import (
    check_clean_tree,
    check_dependencies,
    check_source_branch,
    check_version_markers,
)
from reltool.release.errors import InvalidSourceBranch, ReleaseError
from reltool.release.guard import RecoveryGuard
from reltool.release.params import MergeParams
from reltool.release.pipeline import Step, run_steps
from reltool.release.session import Session

__all__ = ["MERGE_TOOLS", "MergePipeline", "run_merge"]

MERGE_TOOLS = ("git", "lupdate", "tx")


class MergePipeline:
    """Steps of a merge run; values found by one step feed the next."""

    def __init__(self, session: Session, params: MergeParams) -> None:
        self._session = session
        self._params = params
        self._source_branch = params.source_branch or ""
        self._notes = ""

    @property
    def source_branch(self) -> str:
        return self._source_branch

    @property
    def notes(self) -> str:
        return self._notes

    def steps(self) -> list[Step]:
        return [
            Step("Checking required programs...", self._dependencies),
            Step("", self._enter_source_dir),
            Step("Checking version markers...", self._version_markers),
            Step("", lambda: check_clean_tree(self._session)),
            Step("", self._resolve_source_branch),
            Step("Updating source translation file...", self._update_source_translations),
            Step("Pulling updated translations...", self._pull_translations),
            Step("", self._commit_translations),
            Step("", self._read_notes),
            Step(f"Checking out target branch '{self._params.target_branch}'...", self._checkout),
            Step(
                f"Merging into '{self._params.target_branch}'...",
                self._merge,
            ),
            Step(f"Creating tag for '{self._params.version}'...", self._tag),
        ]

    def _dependencies(self) -> Result[None, ReleaseError]:
        return check_dependencies(self._session, MERGE_TOOLS)

    def _enter_source_dir(self) -> Result[None, ReleaseError]:
        self._session.chdir(self._params.source_dir)
        return Ok(None)

    def _version_markers(self) -> Result[None, ReleaseError]:
        return check_version_markers(
            self._params.source_dir, self._session.config, self._params.version
        )

    def _resolve_source_branch(self) -> Result[None, ReleaseError]:
        if not self._source_branch:
            current = self._session.repo.current_branch()
            if isinstance(current, Err):
                return current
            if current.value is None:
                return Err(InvalidSourceBranch(branch="HEAD"))
            self._source_branch = current.value

        checked = check_source_branch(self._source_branch)
        if isinstance(checked, Err):
            return checked
        return Ok(None)

    def _update_source_translations(self) -> Result[None, ReleaseError]:
        return self._session.run("lupdate", *self._session.config.translations.lupdate_args())

    def _pull_translations(self) -> Result[None, ReleaseError]:
        return self._session.run("tx", *self._session.config.translations.tx_args)

    def _commit_translations(self) -> Result[None, ReleaseError]:
        repo = self._session.repo
        directory = self._session.config.translations.directory
        changed = repo.has_changes(directory)
        if isinstance(changed, Err):
            return changed
        if not changed.value:
            return Ok(None)

        self._session.console.info("Committing changes...")
        added = repo.add(directory)
        if isinstance(added, Err):
            return added
        return repo.commit("Update translations")

    def _read_notes(self) -> Result[None, ReleaseError]:
        changelog = self._params.source_dir / self._session.config.files.changelog
        notes = read_release_notes(changelog, self._params.version)
        if isinstance(notes, Err):
            return notes
        self._notes = notes.value.strip()
        return Ok(None)

    def _messages(self) -> list[str]:
        messages = [f"Release {self._params.version}"]
        if self._notes:
            messages.append(self._notes)
        return messages

    def _checkout(self) -> Result[None, ReleaseError]:
        return self._session.repo.checkout(self._params.target_branch)

    def _merge(self) -> Result[None, ReleaseError]:
        return self._session.repo.merge(self._source_branch, messages=self._messages())

    def _tag(self) -> Result[None, ReleaseError]:
        return self._session.repo.tag(self._params.version, messages=self._messages())


def run_merge(session: Session, params: MergeParams) -> Result[None, ReleaseError]:
    """Run the merge pipeline inside a ``RecoveryGuard``."""
    opened = RecoveryGuard.open(session)
    if isinstance(opened, Err):
        return opened

    pipeline = MergePipeline(session, params)
    with opened.value as guard:
        result = guard.track(run_steps(pipeline.steps(), session.console))

    if isinstance(result, Ok):
        session.console.success("All done!")
        session.console.print(
            f"Please merge '{pipeline.source_branch}' back into the develop branch now "
            "and then push your changes."
        )
        session.console.print("Make sure to also push the tags with 'git push --tags'.")
    return result
