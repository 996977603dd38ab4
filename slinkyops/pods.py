"""Predicates over the state of a pod."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from slinkyops.objects import (
    CONDITION_TRUE,
    POD_FAILED,
    POD_PENDING,
    POD_READY,
    POD_RUNNING,
    POD_SUCCEEDED,
    Pod,
    PodCondition,
)


def _ready_condition(pod: Pod) -> PodCondition | None:
    return next((c for c in pod.status.conditions if c.type == POD_READY), None)


def is_pod_ready(pod: Pod) -> bool:
    """True if the pod's Ready condition is True."""
    condition = _ready_condition(pod)
    return condition is not None and condition.status == CONDITION_TRUE


def is_running_and_ready(pod: Pod) -> bool:
    """True if the pod is Running and Ready."""
    return pod.status.phase == POD_RUNNING and is_pod_ready(pod)


def is_running_and_available(pod: Pod, min_ready_seconds: int) -> bool:
    """True if the pod has been Ready for longer than ``min_ready_seconds``."""
    if not is_pod_ready(pod):
        return False
    if min_ready_seconds == 0:
        return True
    since = _ready_condition(pod).last_transition_time
    if since is None:
        return False
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since + timedelta(seconds=min_ready_seconds) < datetime.now(timezone.utc)


def is_created(pod: Pod) -> bool:
    """True if the pod has a phase, i.e. the API server maintains it."""
    return pod.status.phase != ""


def is_pending(pod: Pod) -> bool:
    """True if the pod is Pending."""
    return pod.status.phase == POD_PENDING


def is_failed(pod: Pod) -> bool:
    """True if the pod has Failed."""
    return pod.status.phase == POD_FAILED


def is_succeeded(pod: Pod) -> bool:
    """True if the pod has Succeeded."""
    return pod.status.phase == POD_SUCCEEDED


def is_terminating(pod: Pod) -> bool:
    """True if the pod has a deletion timestamp."""
    return pod.metadata.deletion_timestamp is not None


def is_healthy(pod: Pod) -> bool:
    """True if the pod is running, ready and not terminating."""
    return is_running_and_ready(pod) and not is_terminating(pod)