from datetime import datetime, timezone

from kubernetes.client import V1NodeCondition

from skyactuator.termination.conditions import (
    add_termination_condition,
    has_termination_condition,
    terminating_condition,
)

EARLIER = datetime(2024, 1, 1, tzinfo=timezone.utc)
NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _ready():
    return V1NodeCondition(type="Ready", status="True")


def test_terminating_condition():
    condition = terminating_condition(NOW)

    assert condition.type == "Terminating"
    assert condition.status == "True"
    assert condition.reason == "TerminationRequested"
    assert condition.message
    assert condition.last_heartbeat_time == NOW
    assert condition.last_transition_time == NOW


def test_appends_when_absent():
    ready = _ready()

    conditions = add_termination_condition([ready], NOW)

    assert [c.type for c in conditions] == ["Ready", "Terminating"]
    assert conditions[0] is ready


def test_handles_missing_list():
    conditions = add_termination_condition(None, NOW)

    assert len(conditions) == 1
    assert has_termination_condition(conditions)


def test_keeps_existing_true_condition():
    existing = V1NodeCondition(
        type="Terminating",
        status="True",
        last_heartbeat_time=EARLIER,
        last_transition_time=EARLIER,
    )

    conditions = add_termination_condition([_ready(), existing], NOW)

    assert len(conditions) == 2
    assert conditions[1] is existing
    assert conditions[1].last_transition_time == EARLIER


def test_replaces_false_condition():
    existing = V1NodeCondition(
        type="Terminating", status="False", last_transition_time=EARLIER
    )

    conditions = add_termination_condition([existing, _ready()], NOW)

    assert [c.type for c in conditions] == ["Terminating", "Ready"]
    assert conditions[0].status == "True"
    assert conditions[0].last_transition_time == NOW


def test_is_idempotent():
    once = add_termination_condition([_ready()], NOW)
    twice = add_termination_condition(once, EARLIER)

    assert [c.type for c in twice] == ["Ready", "Terminating"]
    assert twice[1].last_transition_time == NOW


def test_does_not_mutate_input():
    original = [_ready()]

    add_termination_condition(original, NOW)

    assert len(original) == 1
