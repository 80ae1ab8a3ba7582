"""Tests for configuration loading and run settings."""

import pytest

from prpilot_core.config import TOKEN_PLACEHOLDER, Settings, load_config, validate_github_token
from prpilot_core.errors import ConfigError


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    # load_config reads .env from the working directory; keep tests away from a real one.
    monkeypatch.chdir(tmp_path)
    # setenv first so teardown also removes values a test's .env file injected.
    for var in ("GITHUB_TOKEN", "ANTHROPIC_API_KEY", "DIAGRAM_API_KEY", "IMAGE_HOST_API_KEY"):
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["agent_model"] == "claude-haiku-4-5"
    assert config["files_per_page"] == 100
    assert config["interactive"] is True
    assert config["setting_sources"] == ["user", "project"]
    assert "Skill" in config["allowed_tools"]


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".prpilot.yml"
    cfg.write_text("agent_model: claude-sonnet-4-5\ninteractive: false\n")
    config = load_config(config_path=str(cfg))
    assert config["agent_model"] == "claude-sonnet-4-5"
    assert config["interactive"] is False


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".prpilot.yml"
    cfg.write_text("agent_model: claude-sonnet-4-5\n")
    config = load_config(config_path=str(cfg), cli_overrides={"agent_model": "claude-opus-4-1"})
    assert config["agent_model"] == "claude-opus-4-1"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".prpilot.yml"
    cfg.write_text("agent_model: claude-sonnet-4-5\n")
    config = load_config(config_path=str(cfg), cli_overrides={"agent_model": None})
    assert config["agent_model"] == "claude-sonnet-4-5"


def test_invalid_yaml_raises_config_error(tmp_path):
    cfg = tmp_path / ".prpilot.yml"
    cfg.write_text("agent_model: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(config_path=str(cfg))


def test_non_mapping_yaml_raises_config_error(tmp_path):
    cfg = tmp_path / ".prpilot.yml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(config_path=str(cfg))


def test_env_vars_loaded(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("DIAGRAM_API_KEY", "diag-key")
    monkeypatch.setenv("IMAGE_HOST_API_KEY", "img-key")
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] == "gh-token"
    assert config["anthropic_api_key"] == "ant-key"
    assert config["diagram_api_key"] == "diag-key"
    assert config["image_host_api_key"] == "img-key"


def test_dotenv_file_loaded(tmp_path):
    (tmp_path / ".env").write_text("DIAGRAM_API_KEY=from-dotenv\n")
    config = load_config(config_path="nonexistent.yml")
    assert config["diagram_api_key"] == "from-dotenv"


def test_environment_wins_over_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("GITHUB_TOKEN=from-dotenv\n")
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")
    assert load_config(config_path="nonexistent.yml")["github_token"] == "from-env"


def test_tool_lists_are_not_shared_references(tmp_path):
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["allowed_tools"].append("Edit")
    assert "Edit" not in config_b["allowed_tools"]


class TestValidateGithubToken:
    def test_missing_token_raises_with_hint(self):
        with pytest.raises(ConfigError) as exc:
            validate_github_token(None)
        assert "GITHUB_TOKEN" in str(exc.value)
        assert "github.com/settings/tokens" in str(exc.value)

    def test_placeholder_token_rejected(self):
        with pytest.raises(ConfigError):
            validate_github_token(TOKEN_PLACEHOLDER)

    def test_valid_token_returned(self):
        assert validate_github_token(" ghp_abc ") == "ghp_abc"


class TestSettings:
    def test_from_config(self, tmp_path):
        config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
        config["github_token"] = "tok"
        settings = Settings.from_config(config)
        assert settings.github_token == "tok"
        assert settings.agent_model == "claude-haiku-4-5"
        assert settings.allowed_tools == ("Skill", "Bash", "Read", "Write", "Grep", "Glob", "WebFetch")
        assert settings.files_per_page == 100

    def test_from_config_requires_token(self):
        with pytest.raises(ConfigError):
            Settings.from_config({"github_token": None})

    def test_settings_are_immutable(self):
        settings = Settings(github_token="tok")
        with pytest.raises(AttributeError):
            settings.github_token = "other"

    def test_missing_optional_keys_are_logged(self, caplog):
        with caplog.at_level("INFO"):
            Settings.from_config({"github_token": "tok"})
        assert "DIAGRAM_API_KEY" in caplog.text
        assert "IMAGE_HOST_API_KEY" in caplog.text

    def test_agent_env_includes_credentials(self):
        env = Settings(github_token="tok", diagram_api_key="diag").agent_env()
        assert env["GITHUB_TOKEN"] == "tok"
        assert env["DIAGRAM_API_KEY"] == "diag"
        assert "IMAGE_HOST_API_KEY" not in env
