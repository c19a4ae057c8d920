"""Key schema for the SessionContext.user_inputs blackboard.

user_inputs holds two namespaces in one flat mapping:

    - Audit keys: written by the interpreter and orchestrator after every
      decision. Each key is registered here with the Python types it accepts.
    - Business keys: anything else (initial context, the oracle's own
      context_updates). Free-form.

Merging is a shallow overwrite (last writer wins, no deep merge, no list
concatenation). Audit values are validated before anything is written, so a
rejected delta leaves user_inputs untouched.
"""

from enum import Enum
from typing import Any, Dict, List, Mapping, MutableMapping, Tuple

from sarufi.core.exceptions import ContextUpdateError


class AuditKey(str, Enum):
    LAST_DECISION = "last_decision"
    LAST_USER_MESSAGE = "last_user_message"
    SESSION_STAGE = "session_stage"
    USER_SENTIMENT = "user_sentiment"
    GUIDELINES_CONSIDERED = "guidelines_considered"
    OPPORTUNITIES_IDENTIFIED = "opportunities_identified"
    RISKS_IDENTIFIED = "risks_identified"
    PREVIOUS_GOAL = "previous_goal"
    CURRENT_GOAL = "current_goal"
    GOAL_PROGRESS = "goal_progress"
    DECISION_CONFIDENCE = "decision_confidence"
    BACKUP_PLAN = "backup_plan"
    ESCALATION_NEEDED = "escalation_needed"
    ESCALATION_REASON = "escalation_reason"
    LAST_DECISION_TIME = "last_decision_time"
    UPDATED_AT = "updated_at"
    DECISION_QUALITY = "decision_quality"


AUDIT_KEY_TYPES: Dict[str, Tuple[type, ...]] = {
    AuditKey.LAST_DECISION.value: (dict,),
    AuditKey.LAST_USER_MESSAGE.value: (str,),
    AuditKey.SESSION_STAGE.value: (str,),
    AuditKey.USER_SENTIMENT.value: (str,),
    AuditKey.GUIDELINES_CONSIDERED.value: (list,),
    AuditKey.OPPORTUNITIES_IDENTIFIED.value: (list,),
    AuditKey.RISKS_IDENTIFIED.value: (list,),
    AuditKey.PREVIOUS_GOAL.value: (str,),
    AuditKey.CURRENT_GOAL.value: (str,),
    AuditKey.GOAL_PROGRESS.value: (str,),
    AuditKey.DECISION_CONFIDENCE.value: (int, float),
    AuditKey.BACKUP_PLAN.value: (str,),
    AuditKey.ESCALATION_NEEDED.value: (bool,),
    AuditKey.ESCALATION_REASON.value: (str, type(None)),
    AuditKey.LAST_DECISION_TIME.value: (str,),
    AuditKey.UPDATED_AT.value: (str,),
    AuditKey.DECISION_QUALITY.value: (str,),
}


def is_audit_key(key: str) -> bool:
    return key in AUDIT_KEY_TYPES


def validate_context_updates(updates: Mapping[str, Any]) -> None:
    """Check every audit key in `updates` against its registered types.

    Raises:
        ContextUpdateError: On the first audit value with a wrong type
    """
    for key, value in updates.items():
        expected = AUDIT_KEY_TYPES.get(key)
        if expected is not None and not isinstance(value, expected):
            names = ", ".join(t.__name__ for t in expected)
            raise ContextUpdateError(
                f"Context key '{key}' expects {names}, got {type(value).__name__}"
            )


def merge_context_updates(
    user_inputs: MutableMapping[str, Any], updates: Mapping[str, Any]
) -> List[str]:
    """Shallow-merge `updates` into `user_inputs` (all or nothing).

    Returns:
        Keys that were written, in update order
    """
    validate_context_updates(updates)
    for key, value in updates.items():
        user_inputs[key] = value
    return list(updates.keys())


def audit_view(user_inputs: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user_inputs.items() if is_audit_key(k)}


def business_view(user_inputs: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user_inputs.items() if not is_audit_key(k)}
