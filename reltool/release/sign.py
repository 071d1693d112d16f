"""Sign mode: sign artifacts that were built elsewhere.

Neither the branch nor the directory is changed, so no ``RecoveryGuard``
is opened and the run does not need a git repository.
"""

from __future__ import annotations

from pathlib import Path

from reltool.core.result import Err, Ok, Result
from reltool.output.console import Style
from reltool.release.checks import check_dependencies
from reltool.release.errors import ReleaseError
from reltool.release.params import SignParams
from reltool.release.pipeline import Step, run_steps
from reltool.release.session import Session
from reltool.release.signing import (
    SecretSource,
    classify,
    expand_patterns,
    sign_binaries,
    sign_detached,
)
from reltool.release.toolchains import SelectionSource, resolve_toolchain

__all__ = ["SignPipeline", "run_sign", "sign_tools"]


def sign_tools(*, binary: bool) -> tuple[str, ...]:
    return ("signtool", "gpg") if binary else ("gpg",)


class SignPipeline:
    """Steps of a sign run."""

    def __init__(
        self,
        session: Session,
        params: SignParams,
        *,
        selection: SelectionSource,
        secrets: SecretSource,
    ) -> None:
        self._session = session
        self._params = params
        self._selection = selection
        self._secrets = secrets
        self._binary: list[Path] = []
        self._detached: list[Path] = []

    @property
    def uses_key(self) -> bool:
        key = self._params.sign_key
        return key is not None and key.is_file()

    def steps(self) -> list[Step]:
        steps: list[Step] = []
        if self.uses_key:
            steps.append(Step("", self._toolchain))
        steps += [
            Step("Checking required programs...", self._dependencies),
            Step("", self._collect),
            Step("", self._sign_binaries),
            Step("", self._sign_detached),
        ]
        return steps

    def _toolchain(self) -> Result[None, ReleaseError]:
        resolved = resolve_toolchain(
            self._session,
            name=self._params.toolchain,
            selection=self._selection,
            arch=self._params.arch,
        )
        if isinstance(resolved, Err):
            return resolved
        return Ok(None)

    def _dependencies(self) -> Result[None, ReleaseError]:
        return check_dependencies(self._session, sign_tools(binary=self.uses_key))

    def _collect(self) -> Result[None, ReleaseError]:
        files = expand_patterns(self._session.cwd, self._params.files)
        if not files:
            self._session.console.warning("no files matched")
        for file in files:
            self._session.console.print(f"  {file}", Style.DIM)
        self._binary, self._detached = classify(files)
        return Ok(None)

    def _sign_binaries(self) -> Result[None, ReleaseError]:
        config = self._session.config
        return sign_binaries(
            self._session,
            self._binary,
            key=self._params.sign_key,
            timestamp_url=self._params.timestamp_url or config.signing.timestamp_url,
            description=config.sign_description,
            secrets=self._secrets,
        )

    def _sign_detached(self) -> Result[None, ReleaseError]:
        return sign_detached(
            self._session,
            self._detached,
            gpg_key=self._params.gpg_key or self._session.config.signing.gpg_key,
        )


def run_sign(
    session: Session,
    params: SignParams,
    *,
    selection: SelectionSource,
    secrets: SecretSource,
) -> Result[None, ReleaseError]:
    pipeline = SignPipeline(session, params, selection=selection, secrets=secrets)
    result = run_steps(pipeline.steps(), session.console)
    if isinstance(result, Ok):
        session.console.success("All done!")
    return result
