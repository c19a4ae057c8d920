"""
Application settings management.

Settings are loaded from environment variables with .env file support.
All configuration is validated using Pydantic.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML configuration files",
    )
    strategies_dir: Path = Field(
        default=Path("config/strategies"),
        description="Directory containing strategy YAML files",
    )
    log_dir: Optional[Path] = Field(
        default=None,
        description="Directory for per-run log files (console only if unset)",
    )

    # ==========================================================================
    # LLM Configuration
    # ==========================================================================
    #
    # Each strategy names its own provider and model. The default provider is
    # used when a strategy leaves llm_provider empty.

    default_llm_provider: str = Field(
        default="google", description="Provider used when a strategy names none"
    )

    # API Keys (required for providers you use)
    anthropic_api_key: Optional[str] = Field(
        default=None, description="Anthropic API key"
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    google_api_key: Optional[str] = Field(
        default=None, description="Google Gemini API key"
    )

    oracle_temperature: float = Field(
        default=0.7, ge=0.0, le=2.0, description="Sampling temperature for decisions"
    )
    oracle_max_tokens: int = Field(
        default=2048, ge=256, le=16384, description="Max tokens per oracle round"
    )
    oracle_timeout: float = Field(
        default=30.0, gt=0, description="Per-request HTTP timeout in seconds"
    )
    turn_timeout: float = Field(
        default=90.0, gt=0, description="Timeout for one whole turn (all oracle rounds)"
    )

    debug: bool = Field(default=False, description="Enable debug mode")


# ============================================================================
# Orchestrator Configuration (from YAML)
# ============================================================================


class SessionConfig(BaseModel):
    """Session lifecycle configuration."""

    initial_goal: str = Field(
        default="initial_engagement", description="current_goal of a new session"
    )
    start_marker: str = Field(
        default="[SESSION_STARTED]",
        description="Prompt used for the synthetic opening turn",
    )
    fallback_message: str = Field(
        default="I'm sorry, I encountered an issue. Could you please try again?",
        description="Degraded reply returned when a turn fails",
    )


class OracleConfig(BaseModel):
    """Oracle round configuration."""

    max_steps: int = Field(
        default=3, ge=1, le=3, description="Hard cap on oracle rounds per turn"
    )
    temperature: Optional[float] = Field(
        default=None, ge=0.0, le=2.0, description="Overrides settings when set"
    )
    max_tokens: Optional[int] = Field(
        default=None, ge=256, le=16384, description="Overrides settings when set"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Per-request timeout override in seconds"
    )


class OrchestratorConfig(BaseModel):
    """
    Complete orchestrator configuration loaded from orchestrator_config.yaml.
    """

    session: SessionConfig = Field(default_factory=SessionConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)


def load_orchestrator_config(config_path: Optional[Path] = None) -> OrchestratorConfig:
    """
    Load orchestrator configuration from YAML file.

    Args:
        config_path: Path to orchestrator_config.yaml. If None, looks in the
            project config directory and then the working directory.

    Returns:
        OrchestratorConfig with validated settings

    Raises:
        pydantic.ValidationError: If config values are out of range
    """
    if config_path is None:
        config_dir = settings.config_dir
        project_config = (
            Path(__file__).resolve().parent.parent.parent
            / config_dir
            / "orchestrator_config.yaml"
        )
        cwd_config = Path.cwd() / config_dir / "orchestrator_config.yaml"
        if project_config.exists():
            config_path = project_config
        elif cwd_config.exists():
            config_path = cwd_config
        else:
            return OrchestratorConfig()

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return OrchestratorConfig()

    with open(str(config_path)) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return OrchestratorConfig()

    return OrchestratorConfig(**config_data)


# Global settings instance
settings = Settings()

# Global orchestrator config instance
orchestrator_config = load_orchestrator_config()
