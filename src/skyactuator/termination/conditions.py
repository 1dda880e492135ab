from datetime import datetime, timezone

from kubernetes.client import V1NodeCondition

from ..core import (
    TERMINATING_CONDITION_TYPE,
    TERMINATION_REQUESTED_MESSAGE,
    TERMINATION_REQUESTED_REASON,
)


def terminating_condition(now: datetime | None = None) -> V1NodeCondition:
    now = now or datetime.now(timezone.utc)
    return V1NodeCondition(
        type=TERMINATING_CONDITION_TYPE,
        status="True",
        last_heartbeat_time=now,
        last_transition_time=now,
        reason=TERMINATION_REQUESTED_REASON,
        message=TERMINATION_REQUESTED_MESSAGE,
    )


def has_termination_condition(conditions: list[V1NodeCondition] | None) -> bool:
    return any(c.type == TERMINATING_CONDITION_TYPE for c in conditions or [])


def add_termination_condition(
    conditions: list[V1NodeCondition] | None, now: datetime | None = None
) -> list[V1NodeCondition]:
    """
    Returns a new condition list carrying a True Terminating condition.

    An existing True condition is kept untouched; any other status is replaced
    with a fresh one. A missing condition is appended at the end.
    """
    conditions = list(conditions or [])
    if not has_termination_condition(conditions):
        conditions.append(terminating_condition(now))
        return conditions

    merged = []
    for condition in conditions:
        if condition.type != TERMINATING_CONDITION_TYPE or condition.status == "True":
            merged.append(condition)
            continue
        merged.append(terminating_condition(now))
    return merged
