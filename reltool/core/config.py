"""Typed project configuration.

A project may ship a ``reltool.toml`` at its source root to describe where
its version markers live, how translations are refreshed and how artifacts
are signed. Every key is optional; a missing file yields the defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table, get_tables

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_TIMESTAMP_URL",
    "ConfigError",
    "FilesConfig",
    "ProjectConfig",
    "SigningConfig",
    "ToolchainEntry",
    "TranslationsConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "reltool.toml"
DEFAULT_TIMESTAMP_URL = "http://timestamp.sectigo.com"

_DEFAULT_TX_ARGS = ("pull", "-af", "--minimum-perc=60", "--parallel")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class FilesConfig:
    """Paths (relative to the source root) of files carrying the version."""

    cmake: str = "CMakeLists.txt"
    changelog: str = "CHANGELOG.md"
    app_metadata: str = "share/linux/app.metainfo.xml"
    package_manifest: str = "snap/snapcraft.yaml"


@dataclass(frozen=True, slots=True)
class TranslationsConfig:
    """Translation refresh settings used by merge runs."""

    directory: str = "share/translations"
    source_ts: str = "share/translations/app_en.ts"
    tx_args: tuple[str, ...] = _DEFAULT_TX_ARGS

    def lupdate_args(self) -> list[str]:
        return [
            "-no-ui-lines",
            "-disable-heuristic",
            "similartext",
            "-locations",
            "none",
            "-extensions",
            "c,cpp,h,js,mm,qrc,ui",
            "-no-obsolete",
            "./src",
            "-ts",
            self.source_ts,
        ]


@dataclass(frozen=True, slots=True)
class SigningConfig:
    """Defaults for signing, overridable from the command line."""

    timestamp_url: str = DEFAULT_TIMESTAMP_URL
    gpg_key: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class ToolchainEntry:
    """A toolchain installation declared in the config file."""

    name: str
    path: str


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Main configuration container.

    Attributes:
        name: Project name; selects built binaries and names packages.
        cmake_prefix: Prefix of the project's CMake variables.
    """

    name: str = "app"
    cmake_prefix: str = "PROJECT"
    files: FilesConfig = field(default_factory=FilesConfig)
    translations: TranslationsConfig = field(default_factory=TranslationsConfig)
    signing: SigningConfig = field(default_factory=SigningConfig)
    toolchains: tuple[ToolchainEntry, ...] = ()

    @property
    def package_prefix(self) -> str:
        return self.name.lower()

    @property
    def sign_description(self) -> str:
        return self.signing.description or self.name

    @classmethod
    def from_dict(cls, data: Mapping[str, object], *, default_name: str = "app") -> ProjectConfig:
        """Create a config from a mapping (parsed TOML)."""
        project: StrDict = get_table(data, "project") or {}
        files: StrDict = get_table(data, "files") or {}
        translations: StrDict = get_table(data, "translations") or {}
        signing: StrDict = get_table(data, "signing") or {}

        name = get_str(project, "name") or default_name
        tr_dir = get_str(translations, "directory") or "share/translations"

        toolchains: list[ToolchainEntry] = []
        for entry in get_tables(data, "toolchains"):
            tc_name = get_str(entry, "name")
            tc_path = get_str(entry, "path")
            if tc_name is None or tc_path is None:
                raise ValueError("toolchain entries need both 'name' and 'path'")
            toolchains.append(ToolchainEntry(name=tc_name, path=tc_path))

        return cls(
            name=name,
            cmake_prefix=get_str(project, "cmake_prefix") or name.upper().replace("-", "_"),
            files=FilesConfig(
                cmake=get_str(files, "cmake") or "CMakeLists.txt",
                changelog=get_str(files, "changelog") or "CHANGELOG.md",
                app_metadata=get_str(files, "app_metadata") or "share/linux/app.metainfo.xml",
                package_manifest=get_str(files, "package_manifest") or "snap/snapcraft.yaml",
            ),
            translations=TranslationsConfig(
                directory=tr_dir,
                source_ts=get_str(translations, "source_ts")
                or f"{tr_dir}/{name.lower()}_en.ts",
                tx_args=get_str_list(translations, "tx_args") or _DEFAULT_TX_ARGS,
            ),
            signing=SigningConfig(
                timestamp_url=get_str(signing, "timestamp_url") or DEFAULT_TIMESTAMP_URL,
                gpg_key=get_str(signing, "gpg_key"),
                description=get_str(signing, "description"),
            ),
            toolchains=tuple(toolchains),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data = as_str_dict(tomllib.loads(path.read_bytes().decode("utf-8")))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[ProjectConfig, ConfigError]:
    """Load and parse ``reltool.toml``.

    The project name defaults to the name of the directory holding the file.
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ProjectConfig.from_dict(result.value, default_name=path.parent.name or "app"))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(source_dir: Path) -> Result[ProjectConfig, ConfigError]:
    """Load ``reltool.toml`` from ``source_dir``, or defaults if there is none.

    A file that exists but cannot be parsed is still an error.
    """
    path = source_dir / CONFIG_FILE_NAME
    if not path.exists():
        return Ok(ProjectConfig.from_dict({}, default_name=source_dir.name or "app"))
    return load_config(path)
