"""Strategy-driven conversation orchestrator.

Sessions follow a named strategy; every turn an LLM oracle returns a
structured decision that is interpreted into a reply and a context delta.
"""

__version__ = "0.1.0"

from sarufi.domain.models import (  # noqa: E402
    AgentResponse,
    Decision,
    Output,
    Session,
    SessionContext,
    SessionStatus,
    Stats,
    Strategy,
    StrategyPerformance,
)
from sarufi.llm.tools import Tool  # noqa: E402
from sarufi.services.builder import (  # noqa: E402
    OrchestratorBuilder,
    create_builder,
    create_orchestrator,
)
from sarufi.services.orchestrator import SessionOrchestrator  # noqa: E402

__all__ = [
    "__version__",
    "AgentResponse",
    "Decision",
    "Output",
    "Session",
    "SessionContext",
    "SessionStatus",
    "Stats",
    "Strategy",
    "StrategyPerformance",
    "Tool",
    "OrchestratorBuilder",
    "create_builder",
    "create_orchestrator",
    "SessionOrchestrator",
]
