"""
Tool descriptors handed to the decision oracle.

Domain tools are opaque capabilities: a name, a description, a JSON input
schema and an async execute function. The decision tool ("answer") is the
one tool the oracle must call every turn; its argument is a Decision.
"""

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel

from sarufi.domain.models.decision import Decision

DECISION_TOOL_NAME = "answer"

DECISION_TOOL_DESCRIPTION = (
    "Provide the final structured decision for this turn. Call this exactly "
    "once, after any information-gathering tools, with the full analysis, the "
    "chosen action, the message to send and the session meta."
)

ToolExecutor = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass
class Tool:
    """A capability the oracle may invoke during a turn.

    Attributes:
        name: Unique tool name as seen by the model
        description: What the tool does and when to use it
        input_schema: JSON schema for the call arguments
        execute: Async callable receiving the raw argument mapping; None for
            tools that are intercepted rather than executed (the decision tool)
    """

    name: str
    description: str
    input_schema: Dict[str, Any]
    execute: Optional[ToolExecutor] = None

    @classmethod
    def from_model(
        cls,
        name: str,
        description: str,
        args_model: Type[BaseModel],
        handler: Callable[[Any], Awaitable[Any]],
    ) -> "Tool":
        """Build a tool whose schema comes from a pydantic model.

        Arguments are validated into `args_model` before `handler` runs, so a
        malformed call raises pydantic.ValidationError instead of reaching
        domain code.
        """

        async def execute(arguments: Dict[str, Any]) -> Any:
            return await handler(args_model.model_validate(arguments))

        return cls(
            name=name,
            description=description,
            input_schema=args_model.model_json_schema(),
            execute=execute,
        )


def build_decision_tool() -> Tool:
    return Tool(
        name=DECISION_TOOL_NAME,
        description=DECISION_TOOL_DESCRIPTION,
        input_schema=Decision.model_json_schema(),
    )


def assemble_tools(tools: Optional[Sequence[Tool]] = None) -> List[Tool]:
    """Caller tools plus the decision tool.

    A caller tool named like the decision tool is replaced by it.
    """
    assembled = [t for t in (tools or []) if t.name != DECISION_TOOL_NAME]
    assembled.append(build_decision_tool())
    return assembled


def serialize_tool_output(output: Any) -> str:
    """Render a tool's return value as the text fed back to the oracle."""
    if isinstance(output, str):
        return output
    if isinstance(output, BaseModel):
        return output.model_dump_json()
    return json.dumps(output, default=str)
