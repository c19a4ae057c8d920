"""
System prompt for the decision oracle.

Renders a Strategy and the live SessionContext into the prompt the oracle
sees every turn:
- Identity (domain, tone, style, pace)
- Objectives
- The four guideline sets, each with its own marker
- Knowledge base
- Current session context
- Tool-use instructions
"""

import json
from typing import List

from sarufi.domain.models.session import SessionContext
from sarufi.domain.models.strategy import Strategy
from sarufi.llm.tools import DECISION_TOOL_NAME

GUIDELINE_MARKERS = {
    "must_do": ("MUST DO", "✓"),
    "must_not_do": ("MUST NOT DO", "✗"),
    "prefer_to_do": ("PREFER TO DO", "→"),
    "avoid_doing": ("AVOID DOING", "←"),
}


def _format_rules(rules: List[str], marker: str) -> str:
    if not rules:
        return "(none)"
    return "\n".join(f"{marker} {rule}" for rule in rules)


def _guidelines_section(strategy: Strategy) -> str:
    blocks = []
    for field_name, (title, marker) in GUIDELINE_MARKERS.items():
        rules = getattr(strategy.guidelines, field_name)
        blocks.append(f"{title}:\n{_format_rules(rules, marker)}")
    return "STRATEGY GUIDELINES:\n\n" + "\n\n".join(blocks)


def compose_system_prompt(strategy: Strategy, context: SessionContext) -> str:
    """
    Build the oracle system prompt for one turn.

    Args:
        strategy: Strategy bound to the session
        context: Current session context (read only)

    Returns:
        System prompt string for the oracle
    """
    knowledge = strategy.knowledge
    secondary = ", ".join(strategy.secondary_goals) or "(none)"
    profile_json = context.user_profile.model_dump_json(exclude_none=True)
    inputs_json = json.dumps(context.user_inputs, default=str)

    prompt = f"""You are a conversation agent specialized in {strategy.domain}.

CORE IDENTITY:
- Domain: {strategy.domain}
- Tone: {strategy.personality.tone}
- Style: {strategy.personality.style}
- Pace: {strategy.personality.pace}

PRIMARY OBJECTIVE: {strategy.primary_goal}
SECONDARY OBJECTIVES: {secondary}

{_guidelines_section(strategy)}

KNOWLEDGE BASE:
Key Information: {" | ".join(knowledge.key_info)}
Common Questions: {" | ".join(knowledge.common_questions)}
Escalation Triggers: {" | ".join(knowledge.escalation_triggers)}

CURRENT CONTEXT:
- Session ID: {context.session_id}
- Current Goal: {context.current_goal}
- Messages Exchanged: {context.messages_count}
- User Profile: {profile_json}
- User Inputs So Far: {inputs_json}
- Last Action: {context.agent_memory.last_action}

INSTRUCTIONS:
1. If you need specific information to answer the user, use the available tools FIRST
2. After gathering any needed information, call the `{DECISION_TOOL_NAME}` tool exactly once with your decision
3. Think step by step and be strategic, empathetic, and aligned with your guidelines
4. If an escalation trigger applies, set should_escalate and give the reason

The `{DECISION_TOOL_NAME}` tool call must contain your complete analysis and response."""

    if strategy.system_prompt:
        return f"{strategy.system_prompt.strip()}\n\n{prompt}"
    return prompt
