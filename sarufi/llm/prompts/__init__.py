# noqa
from sarufi.llm.prompts.agent import compose_system_prompt

__all__ = ["compose_system_prompt"]
