"""Tests for configuration module."""

import os

import pytest


def test_settings_defaults():
    """Settings have sensible defaults."""
    from sarufi.core.config import Settings

    s = Settings(_env_file=None)

    assert s.default_llm_provider == "google"
    assert s.oracle_temperature == 0.7
    assert s.turn_timeout > s.oracle_timeout


def test_settings_from_env():
    """Settings can be overridden via environment variables."""
    os.environ["DEFAULT_LLM_PROVIDER"] = "anthropic"
    os.environ["TURN_TIMEOUT"] = "42"

    try:
        from sarufi.core.config import Settings

        s = Settings(_env_file=None)

        assert s.default_llm_provider == "anthropic"
        assert s.turn_timeout == 42.0
    finally:
        del os.environ["DEFAULT_LLM_PROVIDER"]
        del os.environ["TURN_TIMEOUT"]


def test_settings_validation():
    """Settings validate constraints."""
    from pydantic import ValidationError
    from sarufi.core.config import Settings

    with pytest.raises(ValidationError):
        Settings(_env_file=None, oracle_temperature=3.0)

    with pytest.raises(ValidationError):
        Settings(_env_file=None, turn_timeout=0)


def test_global_settings_available():
    """Global settings instance is importable."""
    from sarufi.core.config import settings

    assert settings is not None
    assert hasattr(settings, "strategies_dir")


class TestOrchestratorConfig:
    """Tests for orchestrator_config.yaml loading."""

    def test_defaults(self):
        from sarufi.core.config import OrchestratorConfig

        config = OrchestratorConfig()

        assert config.session.initial_goal == "initial_engagement"
        assert config.session.start_marker == "[SESSION_STARTED]"
        assert config.oracle.max_steps == 3

    def test_project_config_loads(self):
        """The shipped config file loads and keeps the hard step cap."""
        from sarufi.core.config import load_orchestrator_config

        config = load_orchestrator_config()

        assert config.oracle.max_steps <= 3
        assert config.session.start_marker == "[SESSION_STARTED]"

    def test_missing_file_yields_defaults(self, tmp_path):
        from sarufi.core.config import OrchestratorConfig, load_orchestrator_config

        config = load_orchestrator_config(tmp_path / "missing.yaml")

        assert config == OrchestratorConfig()

    def test_empty_file_yields_defaults(self, tmp_path):
        from sarufi.core.config import OrchestratorConfig, load_orchestrator_config

        path = tmp_path / "orchestrator_config.yaml"
        path.write_text("")

        assert load_orchestrator_config(path) == OrchestratorConfig()

    def test_partial_file_overrides(self, tmp_path):
        from sarufi.core.config import load_orchestrator_config

        path = tmp_path / "orchestrator_config.yaml"
        path.write_text("session:\n  initial_goal: greet\noracle:\n  max_steps: 2\n")

        config = load_orchestrator_config(path)

        assert config.session.initial_goal == "greet"
        assert config.session.start_marker == "[SESSION_STARTED]"
        assert config.oracle.max_steps == 2

    def test_max_steps_above_cap_rejected(self, tmp_path):
        from pydantic import ValidationError
        from sarufi.core.config import load_orchestrator_config

        path = tmp_path / "orchestrator_config.yaml"
        path.write_text("oracle:\n  max_steps: 5\n")

        with pytest.raises(ValidationError):
            load_orchestrator_config(path)
