"""Strategy domain models.

A strategy is the immutable behavioral configuration an agent follows:
goals, tone, rule sets, knowledge and the oracle provider/model selector.

Lifecycle:
    - Created at registration time (from code or a YAML file)
    - Never mutated (models are frozen)
    - Removed only by explicit unregistration
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Personality(BaseModel):
    """Tone, style and pace the agent speaks with."""

    model_config = ConfigDict(frozen=True)

    tone: str
    style: str
    pace: str


class Guidelines(BaseModel):
    """Ordered free-text rule sets that constrain the agent."""

    model_config = ConfigDict(frozen=True)

    must_do: List[str] = Field(default_factory=list)
    must_not_do: List[str] = Field(default_factory=list)
    prefer_to_do: List[str] = Field(default_factory=list)
    avoid_doing: List[str] = Field(default_factory=list)


class Knowledge(BaseModel):
    """Facts the agent may rely on, plus the escalation triggers."""

    model_config = ConfigDict(frozen=True)

    key_info: List[str] = Field(default_factory=list)
    common_questions: List[str] = Field(default_factory=list)
    escalation_triggers: List[str] = Field(default_factory=list)


class Strategy(BaseModel):
    """Named, immutable behavioral configuration.

    Attributes:
        name: Unique registry key
        domain: Domain tag (e.g. "sales", "support")
        primary_goal: Main objective of every session
        secondary_goals: Supporting objectives
        llm_provider: Oracle provider ("anthropic", "openai", "google");
            None uses settings.default_llm_provider
        model: Provider model id; unknown ids fall back to the provider default
        system_prompt: Optional preamble placed before the composed prompt
    """

    model_config = ConfigDict(frozen=True)

    name: str
    domain: str
    primary_goal: str
    secondary_goals: List[str] = Field(default_factory=list)
    llm_provider: Optional[str] = None
    model: Optional[str] = None
    personality: Personality
    system_prompt: Optional[str] = None
    guidelines: Guidelines
    knowledge: Knowledge = Field(default_factory=Knowledge)
