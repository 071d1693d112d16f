"""Build mode: configure, compile, package and optionally sign a release.

Release builds check out ``tags/<tag or version>`` on a clean tree and
start from an empty output directory. Snapshot builds use whatever is
checked out and are versioned ``<version>-snapshot``. Either way the
original branch and directory are restored when the run ends, whether it
succeeded or not.

Layout produced under the output directory::

    <output>/
        build-release/          CMake binary dir (left in place)
        <package>-<...>.msi     packages moved out of build-release
        <package>-<...>.zip
        *.sig, *.DIGEST         when signing
"""

from __future__ import annotations

import shutil
from pathlib import Path

from reltool.core.result import Err, Ok, Result
from reltool.release.checks import check_clean_tree, check_dependencies
from reltool.release.errors import FileOperationFailed, ReleaseError
from reltool.release.guard import RecoveryGuard
from reltool.release.params import BuildParams
from reltool.release.pipeline import Step, run_steps
from reltool.release.session import Session
from reltool.release.signing import CachedSecret, SecretSource, sign_binaries, sign_detached
from reltool.release.toolchains import SelectionSource, resolve_toolchain
from reltool.release.version import BuildType, build_type, release_name

__all__ = ["BUILD_DIR_NAME", "BuildPipeline", "build_tools", "run_build"]

BUILD_DIR_NAME = "build-release"


def build_tools(*, sign: bool) -> tuple[str, ...]:
    tools = ("git", "cmake", "cpack")
    if sign:
        tools += ("signtool", "gpg")
    return tools


def _files(directory: Path, patterns: tuple[str, ...], *, recursive: bool = False) -> list[Path]:
    if not directory.is_dir():
        return []
    found: set[Path] = set()
    for pattern in patterns:
        if recursive:
            matches = directory.rglob(pattern, case_sensitive=False)
        else:
            matches = directory.glob(pattern, case_sensitive=False)
        found.update(p for p in matches if p.is_file())
    return sorted(found)


class BuildPipeline:
    """Steps of a build run."""

    def __init__(
        self,
        session: Session,
        params: BuildParams,
        *,
        selection: SelectionSource,
        secrets: SecretSource,
    ) -> None:
        self._session = session
        self._params = params
        self._selection = selection
        self._secrets = CachedSecret(secrets)

    @property
    def build_dir(self) -> Path:
        return self._params.output_dir / BUILD_DIR_NAME

    @property
    def release_name(self) -> str:
        return release_name(self._params.version, snapshot=self._params.snapshot)

    @property
    def build_type(self) -> BuildType:
        # A tag override may carry a pre-release suffix; the version cannot.
        p = self._params
        return build_type(p.tag or p.version, snapshot=p.snapshot)

    def steps(self) -> list[Step]:
        p = self._params
        steps = [
            Step("", self._toolchain),
            Step("Checking required programs...", self._dependencies),
        ]
        if p.snapshot:
            steps.append(Step(f"Building snapshot '{self.release_name}'...", lambda: Ok(None)))
        else:
            steps += [
                Step("", lambda: check_clean_tree(self._session)),
                Step("", self._clear_output),
                Step(f"Checking out release tag '{p.checkout_ref}'...", self._checkout),
            ]
        steps += [
            Step("", self._prepare_build_dir),
            Step("Configuring build...", self._configure),
            Step("Compiling sources...", self._compile),
        ]
        if p.sign:
            steps.append(Step("Signing binaries...", self._sign_built_binaries))
        steps += [
            Step("Creating packages...", self._package),
            Step("", self._collect_packages),
        ]
        if p.sign:
            steps.append(Step("Signing packages...", self._sign_packages))
        return steps

    # -- preparation ----------------------------------------------------------

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
        return check_dependencies(self._session, build_tools(sign=self._params.sign))

    def _clear_output(self) -> Result[None, ReleaseError]:
        out = self._params.output_dir
        if out.exists():
            self._session.console.info(f"Removing previous output '{out}'...")
            try:
                shutil.rmtree(out)
            except OSError as e:
                return Err(
                    FileOperationFailed(path=out, message=f"failed to remove previous output: {e}")
                )
        return Ok(None)

    def _checkout(self) -> Result[None, ReleaseError]:
        return self._session.repo.checkout(self._params.checkout_ref)

    def _prepare_build_dir(self) -> Result[None, ReleaseError]:
        try:
            self.build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(
                FileOperationFailed(
                    path=self.build_dir, message=f"failed to create build directory: {e}"
                )
            )
        self._session.chdir(self.build_dir)
        return Ok(None)

    # -- cmake ----------------------------------------------------------------

    def configure_args(self) -> list[str]:
        p = self._params
        prefix = self._session.config.cmake_prefix
        args = ["-G", p.generator, "-DCMAKE_BUILD_TYPE=Release"]
        if p.toolchain_file is not None:
            args.append(f"-DCMAKE_TOOLCHAIN_FILE={p.toolchain_file}")
        args.append(f"-D{prefix}_BUILD_TYPE={self.build_type}")
        if p.snapshot:
            args.append(f"-DOVERRIDE_VERSION={self.release_name}")
        args += [*p.cmake_options, str(p.source_dir)]
        return args

    def _configure(self) -> Result[None, ReleaseError]:
        return self._session.run("cmake", *self.configure_args())

    def _compile(self) -> Result[None, ReleaseError]:
        args = ["--build", ".", "--config", "Release"]
        if self._params.make_options:
            args += ["--", *self._params.make_options]
        return self._session.run("cmake", *args)

    def _package(self) -> Result[None, ReleaseError]:
        return self._session.run("cpack", "-G", ";".join(self._params.package_generators))

    def _collect_packages(self) -> Result[None, ReleaseError]:
        prefix = self._session.config.package_prefix
        for package in _files(self.build_dir, (f"{prefix}-*",)):
            target = self._params.output_dir / package.name
            try:
                target.unlink(missing_ok=True)
                shutil.move(package, target)
            except OSError as e:
                return Err(
                    FileOperationFailed(path=target, message=f"failed to move {package.name}: {e}")
                )
        return Ok(None)

    # -- signing --------------------------------------------------------------

    def _sign_binaries(self, files: list[Path]) -> Result[None, ReleaseError]:
        p = self._params
        config = self._session.config
        return sign_binaries(
            self._session,
            files,
            key=p.sign_key,
            timestamp_url=p.timestamp_url or config.signing.timestamp_url,
            description=config.sign_description,
            secrets=self._secrets,
        )

    def _sign_built_binaries(self) -> Result[None, ReleaseError]:
        name = self._session.config.name
        patterns = (f"*{name}*.exe", f"*{name}*.dll")
        return self._sign_binaries(_files(self.build_dir / "src", patterns, recursive=True))

    def _sign_packages(self) -> Result[None, ReleaseError]:
        out = self._params.output_dir
        signed = self._sign_binaries(_files(out, ("*.msi",)))
        if isinstance(signed, Err):
            return signed
        return sign_detached(
            self._session,
            _files(out, ("*.msi", "*.zip")),
            gpg_key=self._params.gpg_key or self._session.config.signing.gpg_key,
        )


def run_build(
    session: Session,
    params: BuildParams,
    *,
    selection: SelectionSource,
    secrets: SecretSource,
) -> Result[None, ReleaseError]:
    """Run the build pipeline; branch and directory are restored either way."""
    opened = RecoveryGuard.open(session, always=True)
    if isinstance(opened, Err):
        return opened

    pipeline = BuildPipeline(session, params, selection=selection, secrets=secrets)
    with opened.value as guard:
        result = guard.track(run_steps(pipeline.steps(), session.console))

    if isinstance(result, Ok):
        session.console.success(f"All done! Packages are in '{params.output_dir}'.")
    return result
