"""Tests for reltool.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from reltool.core.config import (
    CONFIG_FILE_NAME,
    DEFAULT_TIMESTAMP_URL,
    ConfigError,
    FilesConfig,
    ProjectConfig,
    TranslationsConfig,
    load_config,
    load_config_or_default,
)
from reltool.core.result import Err, Ok


class TestDefaults:
    def test_files_defaults(self) -> None:
        files = FilesConfig()
        assert files.cmake == "CMakeLists.txt"
        assert files.changelog == "CHANGELOG.md"

    def test_lupdate_args_end_with_source_ts(self) -> None:
        tr = TranslationsConfig(source_ts="share/translations/demo_en.ts")
        args = tr.lupdate_args()
        assert args[-2:] == ["-ts", "share/translations/demo_en.ts"]
        assert "./src" in args

    def test_tx_args_default(self) -> None:
        assert TranslationsConfig().tx_args == ("pull", "-af", "--minimum-perc=60", "--parallel")

    def test_frozen(self) -> None:
        config = ProjectConfig()
        with pytest.raises(AttributeError):
            config.name = "other"  # type: ignore[misc]


class TestFromDict:
    def test_empty_uses_default_name(self) -> None:
        config = ProjectConfig.from_dict({}, default_name="my-app")
        assert config.name == "my-app"
        assert config.cmake_prefix == "MY_APP"
        assert config.package_prefix == "my-app"
        assert config.translations.source_ts == "share/translations/my-app_en.ts"
        assert config.signing.timestamp_url == DEFAULT_TIMESTAMP_URL
        assert config.toolchains == ()

    def test_full(self) -> None:
        config = ProjectConfig.from_dict(
            {
                "project": {"name": "KeePassXC", "cmake_prefix": "KEEPASSXC"},
                "files": {"package_manifest": "snapcraft.yaml"},
                "translations": {"tx_args": ["pull", "-a"]},
                "signing": {"gpg_key": "ABCDEF", "description": "KeePassXC"},
                "toolchains": [{"name": "LLVM", "path": "/opt/llvm"}],
            }
        )
        assert config.name == "KeePassXC"
        assert config.cmake_prefix == "KEEPASSXC"
        assert config.package_prefix == "keepassxc"
        assert config.files.package_manifest == "snapcraft.yaml"
        assert config.files.cmake == "CMakeLists.txt"
        assert config.translations.tx_args == ("pull", "-a")
        assert config.signing.gpg_key == "ABCDEF"
        assert config.sign_description == "KeePassXC"
        assert config.toolchains[0].name == "LLVM"

    def test_sign_description_defaults_to_name(self) -> None:
        config = ProjectConfig.from_dict({"project": {"name": "Demo"}})
        assert config.sign_description == "Demo"

    def test_toolchain_without_path_rejected(self) -> None:
        with pytest.raises(ValueError):
            ProjectConfig.from_dict({"toolchains": [{"name": "x"}]})


class TestLoadConfig:
    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('[project]\nname = "demo"\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.name == "demo"
        assert result.value.cmake_prefix == "DEMO"

    def test_name_defaults_to_directory(self, tmp_path: Path) -> None:
        root = tmp_path / "widget"
        root.mkdir()
        path = root / CONFIG_FILE_NAME
        path.write_text("", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.name == "widget"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / CONFIG_FILE_NAME)
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("[project\nname=", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('[[toolchains]]\nname = "x"\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message


class TestLoadConfigOrDefault:
    def test_absent_file_gives_defaults(self, tmp_path: Path) -> None:
        root = tmp_path / "proj"
        root.mkdir()

        result = load_config_or_default(root)

        assert isinstance(result, Ok)
        assert result.value.name == "proj"

    def test_broken_file_is_error(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE_NAME).write_text("=", encoding="utf-8")
        assert isinstance(load_config_or_default(tmp_path), Err)
