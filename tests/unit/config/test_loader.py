"""Unit tests for tiergate.config.loader module."""

import os
from pathlib import Path
import stat

import pytest
import yaml

from tiergate.config.loader import (
    create_default_config,
    load_config,
    load_credentials,
    load_credentials_or_empty,
    resolve_api_key,
)
from tiergate.config.models import (
    CredentialsConfig,
    ProviderCredentials,
    TiergateConfig,
)
from tiergate.core.errors import ConfigError


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = tmp_path / ".tiergate"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config_file(temp_config_dir: Path) -> Path:
    """Create a temporary config file with two tiers."""
    config_path = temp_config_dir / "config.yaml"
    config_content = {
        "router": {
            "tiers": [
                {"name": "minimax", "provider": "minimax", "model": "MiniMax-Text-01"},
                {
                    "name": "anthropic",
                    "provider": "anthropic",
                    "model": "claude-opus-4-20250514",
                    "cost_factor": 60,
                },
            ],
        },
        "gate": {"threshold": 0.8, "penalties": {"injection": 0.5}},
    }
    with config_path.open("w") as f:
        yaml.dump(config_content, f)
    return config_path


class TestCreateDefaultConfig:
    """Test create_default_config."""

    def test_creates_both_files(self, temp_config_dir: Path) -> None:
        config_path, credentials_path = create_default_config(temp_config_dir)

        assert config_path.exists()
        assert credentials_path.exists()

    def test_credentials_are_owner_only(self, temp_config_dir: Path) -> None:
        _, credentials_path = create_default_config(temp_config_dir)

        mode = stat.S_IMODE(credentials_path.stat().st_mode)
        assert mode == stat.S_IRUSR | stat.S_IWUSR

    def test_created_files_load_back(self, temp_config_dir: Path) -> None:
        config_path, credentials_path = create_default_config(temp_config_dir)

        config = load_config(config_path)
        credentials = load_credentials(credentials_path)

        assert [t.name for t in config.router.tiers] == ["minimax", "openai", "anthropic"]
        assert config.get_experiment("minimax-vs-openai") is not None
        assert credentials.providers["minimax"].api_key == "YOUR_MINIMAX_API_KEY"

    def test_refuses_to_overwrite(self, temp_config_dir: Path) -> None:
        create_default_config(temp_config_dir)

        with pytest.raises(ConfigError, match="already exists"):
            create_default_config(temp_config_dir)

    def test_overwrite(self, temp_config_dir: Path) -> None:
        create_default_config(temp_config_dir)

        config_path, _ = create_default_config(temp_config_dir, overwrite=True)

        assert config_path.exists()

    def test_creates_missing_directory(self, tmp_path: Path) -> None:
        config_path, _ = create_default_config(tmp_path / "nested" / "dir")

        assert config_path.exists()


class TestLoadConfig:
    """Test load_config."""

    def test_load_valid_config(self, temp_config_file: Path) -> None:
        config = load_config(temp_config_file)

        assert isinstance(config, TiergateConfig)
        assert config.gate.threshold == 0.8
        assert config.gate.build_policy().injection == 0.5
        assert config.router.tiers[1].cost_factor == 60

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found") as exc_info:
            load_config(tmp_path / "missing.yaml")

        assert "tiergate config init" in str(exc_info.value)

    def test_invalid_yaml(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("router: [unclosed")

        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(path)

    def test_non_mapping(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(path)

    def test_empty_file_gives_defaults(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("")

        config = load_config(path)

        assert config.router.tiers == []
        assert config.gate.threshold == 0.70

    def test_validation_error_lists_location(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("gate:\n  threshold: 1.5\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert "gate.threshold" in exc_info.value.message
        assert exc_info.value.config_file == str(path)


class TestLoadCredentials:
    """Test load_credentials and load_credentials_or_empty."""

    def test_load_valid(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "credentials.yaml"
        path.write_text("providers:\n  openai:\n    api_key: sk-real\n")
        os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)

        credentials = load_credentials(path)

        assert credentials.providers["openai"].api_key == "sk-real"

    def test_empty_key_rejected(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "credentials.yaml"
        path.write_text("providers:\n  openai:\n    api_key: ''\n")

        with pytest.raises(ConfigError, match="Credentials validation failed"):
            load_credentials(path)

    def test_or_empty_missing_file(self, tmp_path: Path) -> None:
        assert load_credentials_or_empty(tmp_path / "none.yaml") == CredentialsConfig()

    def test_or_empty_still_rejects_malformed(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "credentials.yaml"
        path.write_text("providers: [")

        with pytest.raises(ConfigError):
            load_credentials_or_empty(path)


class TestResolveApiKey:
    """Test resolve_api_key priority."""

    def test_credentials_entry_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        credentials = CredentialsConfig(
            providers={"openai": ProviderCredentials(api_key="sk-file")}
        )

        assert resolve_api_key("openai", credentials) == "sk-file"

    def test_placeholder_falls_back_to_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        credentials = CredentialsConfig(
            providers={"openai": ProviderCredentials(api_key="YOUR_OPENAI_API_KEY")}
        )

        assert resolve_api_key("openai", credentials) == "sk-env"

    def test_env_only(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MINIMAX_API_KEY", "  mm-env  ")

        assert resolve_api_key("minimax") == "mm-env"

    def test_no_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        assert resolve_api_key("anthropic", CredentialsConfig()) is None

    def test_blank_env_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "   ")

        assert resolve_api_key("anthropic") is None
