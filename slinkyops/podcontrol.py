"""Creating, deleting and patching pods on behalf of a controller."""

from __future__ import annotations

import copy
import logging
import re
import threading
from dataclasses import dataclass
from typing import Any

from slinkyops.objects import (
    ApiError,
    Client,
    NotFoundError,
    ObjectMeta,
    OwnerReference,
    Pod,
    PodTemplateSpec,
)

logger = logging.getLogger(__name__)

EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"

FAILED_CREATE_POD_REASON = "FailedCreate"
SUCCESSFUL_CREATE_POD_REASON = "SuccessfulCreate"
FAILED_DELETE_POD_REASON = "FailedDelete"
SUCCESSFUL_DELETE_POD_REASON = "SuccessfulDelete"

NAMESPACE_TERMINATING_CAUSE = "NamespaceTerminating"

_DNS1123_SUBDOMAIN = re.compile(
    r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*"
)
_DNS1123_SUBDOMAIN_MAX_LENGTH = 253


@dataclass
class Event:
    """One event recorded against an object."""

    obj: Any
    event_type: str
    reason: str
    message: str


class EventRecorder:
    """Collects events in memory, in the order they were recorded."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[Event] = []

    def event(self, obj: Any, event_type: str, reason: str, message: str) -> None:
        """Record an event about ``obj``."""
        with self._lock:
            self.events.append(Event(obj, event_type, reason, message))


def _has_metadata(obj: Any) -> bool:
    return isinstance(getattr(obj, "metadata", None), ObjectMeta)


def _valid_pod_name_prefix(prefix: str) -> bool:
    name = prefix[:-1] + "a" if len(prefix) > 1 and prefix.endswith("-") else prefix
    return (
        len(name) <= _DNS1123_SUBDOMAIN_MAX_LENGTH
        and _DNS1123_SUBDOMAIN.fullmatch(name) is not None
    )


def _pods_prefix(controller_name: str) -> str:
    prefix = f"{controller_name}-"
    return prefix if _valid_pod_name_prefix(prefix) else controller_name


def get_pod_from_template(
    template: PodTemplateSpec, parent: Any, controller_ref: OwnerReference | None
) -> Pod:
    """Build a new pod from ``template``, owned by ``controller_ref``."""
    if not _has_metadata(parent):
        raise ValueError("parentObject does not have ObjectMeta")
    meta = ObjectMeta(
        labels=dict(template.metadata.labels),
        annotations=dict(template.metadata.annotations),
        generate_name=_pods_prefix(parent.metadata.name),
        finalizers=list(template.metadata.finalizers),
    )
    if controller_ref is not None:
        meta.owner_references.append(copy.deepcopy(controller_ref))
    return Pod(metadata=meta, spec=copy.deepcopy(template.spec))


def validate_controller_ref(controller_ref: OwnerReference | None) -> None:
    """Raise ValueError unless ``controller_ref`` is a complete controller reference."""
    if controller_ref is None:
        raise ValueError("controllerRef is nil")
    if not controller_ref.api_version:
        raise ValueError("controllerRef has empty APIVersion")
    if not controller_ref.kind:
        raise ValueError("controllerRef has empty Kind")
    if not controller_ref.controller:
        raise ValueError("controllerRef.Controller is not set to true")
    if not controller_ref.block_owner_deletion:
        raise ValueError("controllerRef.BlockOwnerDeletion is not set")


class PodControl:
    """Creates and removes pods through a client, recording events."""

    def __init__(self, client: Client, recorder: EventRecorder) -> None:
        self.client = client
        self.recorder = recorder

    def create_pods(
        self,
        namespace: str,
        template: PodTemplateSpec,
        parent: Any,
        controller_ref: OwnerReference | None,
    ) -> Pod:
        """Create one pod from ``template`` in ``namespace`` and return it."""
        return self.create_pods_with_generate_name(
            namespace, template, parent, controller_ref, ""
        )

    def create_pods_with_generate_name(
        self,
        namespace: str,
        template: PodTemplateSpec,
        parent: Any,
        controller_ref: OwnerReference | None,
        generate_name: str,
    ) -> Pod:
        """Create one pod from ``template``, optionally with its own name prefix."""
        validate_controller_ref(controller_ref)
        pod = get_pod_from_template(template, parent, controller_ref)
        pod.metadata.namespace = namespace
        if generate_name:
            pod.metadata.generate_name = generate_name
        self._create_pod(pod, parent)
        return pod

    def create_this_pod(self, pod: Pod | None, parent: Any) -> None:
        """Create exactly the given pod on behalf of ``parent``."""
        if pod is None:
            raise ValueError("pod cannot be None")
        self._create_pod(pod, parent)

    def _create_pod(self, pod: Pod, parent: Any) -> None:
        if not pod.metadata.labels:
            raise ValueError("unable to create pods, no labels")
        try:
            self.client.create(pod)
        except ApiError as err:
            if getattr(err, "cause", None) != NAMESPACE_TERMINATING_CAUSE:
                self.recorder.event(
                    parent, EVENT_TYPE_WARNING, FAILED_CREATE_POD_REASON, f"Error creating: {err}"
                )
            raise
        if not _has_metadata(parent):
            logger.error("parentObject does not have ObjectMeta")
            return
        logger.debug(
            "Controller %s created pod %s/%s",
            parent.metadata.name,
            pod.metadata.namespace,
            pod.metadata.name,
        )
        self.recorder.event(
            parent,
            EVENT_TYPE_NORMAL,
            SUCCESSFUL_CREATE_POD_REASON,
            f"Created pod: {pod.metadata.name}",
        )

    def delete_pod(self, namespace: str, pod_name: str, parent: Any) -> None:
        """Delete the named pod on behalf of ``parent``."""
        if not _has_metadata(parent):
            raise ValueError("object does not have ObjectMeta")
        logger.debug(
            "Controller %s deleting pod %s/%s", parent.metadata.name, namespace, pod_name
        )
        pod = Pod(metadata=ObjectMeta(namespace=namespace, name=pod_name))
        try:
            self.client.delete(pod)
        except NotFoundError:
            logger.debug("Pod %s/%s has already been deleted.", namespace, pod_name)
            raise
        except ApiError as err:
            self.recorder.event(
                parent, EVENT_TYPE_WARNING, FAILED_DELETE_POD_REASON, f"Error deleting: {err}"
            )
            raise ApiError(f"unable to delete pods: {err}") from err
        self.recorder.event(
            parent, EVENT_TYPE_NORMAL, SUCCESSFUL_DELETE_POD_REASON, f"Deleted pod: {pod_name}"
        )

    def patch_pod(self, namespace: str, name: str, data: bytes | str) -> Pod:
        """Apply a merge patch to the named pod and return the patched pod."""
        pod = Pod(metadata=ObjectMeta(namespace=namespace, name=name))
        self.client.patch(pod, data)
        return pod