from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError
import pytest

from sitesmith.config import Settings, load_settings


def test_defaults_when_file_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BOOT_ATTEMPTS", "BOOT_DELAY_S", "INSTALL_COMMAND", "RUN_COMMAND", "LOG_LEVEL"):
        monkeypatch.delenv(f"SITESMITH_{name}", raising=False)

    settings = load_settings(tmp_path / "missing.yaml")

    assert settings == Settings()


def test_yaml_values_and_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "sitesmith.yaml"
    config.write_text(
        "\n".join(
            [
                "run_command: pnpm run dev --host",
                "boot_attempts: 5",
                "boot_delay_s: 2",
                "log_level: DEBUG",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("SITESMITH_BOOT_ATTEMPTS", "4")
    monkeypatch.setenv("SITESMITH_INSTALL_COMMAND", "yarn install --frozen-lockfile")

    settings = load_settings(config)

    assert settings.run_command == ("pnpm", "run", "dev", "--host")
    assert settings.install_command == ("yarn", "install", "--frozen-lockfile")
    assert settings.boot_attempts == 4
    assert settings.boot_delay_s == 2.0
    assert settings.log_level == "DEBUG"


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    config = tmp_path / "sitesmith.yaml"
    config.write_text("boot_retries: 3\n", encoding="utf-8")

    with pytest.raises(ValueError, match="boot_retries"):
        load_settings(config)


def test_command_strings_are_split_and_lists_kept() -> None:
    settings = Settings(install_command="pnpm install --prefer-offline", run_command=["node", "server.js"])

    assert settings.install_command == ("pnpm", "install", "--prefer-offline")
    assert settings.run_command == ("node", "server.js")


def test_invalid_env_value_is_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SITESMITH_BOOT_ATTEMPTS", "0")

    with pytest.raises(ValidationError, match="boot_attempts"):
        load_settings(tmp_path / "missing.yaml")


def test_settings_are_immutable() -> None:
    settings = Settings()

    with pytest.raises(ValidationError):
        settings.boot_attempts = 9
