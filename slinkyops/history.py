"""Controller revision history: hashing, naming and lifecycle operations."""

from __future__ import annotations

import copy
import random
import time
from typing import Any, Callable, TypeVar

from slinkyops.objects import (
    Client,
    ConflictError,
    ControllerRevision,
    InvalidError,
    NamespacedName,
    NotFoundError,
    OwnerReference,
    ApiError,
    get_controller_of,
)

CONTROLLER_REVISION_HASH_LABEL = "controller.kubernetes.io/hash"

_SAFE_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"
_MAX_PREFIX_LENGTH = 223

_RETRY_STEPS = 4
_RETRY_DELAY = 0.01
_RETRY_FACTOR = 5.0
_RETRY_JITTER = 0.1

R = TypeVar("R")


def set_revision(labels: dict[str, str] | None, revision: str) -> dict[str, str]:
    """Record ``revision`` under the hash label and return the labels.

    A missing mapping is replaced by a new one; an empty revision is ignored.
    """
    if labels is None:
        labels = {}
    if revision:
        labels[CONTROLLER_REVISION_HASH_LABEL] = revision
    return labels


def get_revision(labels: dict[str, str] | None) -> str:
    """Return the revision hash recorded in ``labels``, or an empty string."""
    if labels is None:
        return ""
    return labels.get(CONTROLLER_REVISION_HASH_LABEL, "")


def _fnv1_32(data: bytes) -> int:
    value = 0x811C9DC5
    for byte in data:
        value = (value * 0x01000193) & 0xFFFFFFFF
        value ^= byte
    return value


def hash_controller_revision(revision: ControllerRevision, collision_count: int | None) -> str:
    """Return a name-safe hash of the revision data and collision count."""
    data = revision.data
    if collision_count is not None:
        data += str(collision_count).encode()
    digits = str(_fnv1_32(data)).encode()
    return "".join(_SAFE_ALPHABET[byte % len(_SAFE_ALPHABET)] for byte in digits)


def controller_revision_name(prefix: str, hash_value: str) -> str:
    """Return the revision name for a parent name prefix and a hash."""
    return f"{prefix[:_MAX_PREFIX_LENGTH]}-{hash_value}"


def _retry_on_conflict(attempt: Callable[[], R]) -> R:
    delay = _RETRY_DELAY
    for step in range(_RETRY_STEPS):
        try:
            return attempt()
        except ConflictError:
            if step == _RETRY_STEPS - 1:
                raise
            time.sleep(delay * (1 + random.random() * _RETRY_JITTER))
            delay *= _RETRY_FACTOR
    raise AssertionError("unreachable")


class HistoryControl:
    """Manages the controller revisions of parent objects through a client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def list_controller_revisions(
        self, parent: Any, selector: dict[str, str] | None
    ) -> list[ControllerRevision]:
        """Return the revisions in the parent's namespace matching ``selector``
        that are owned by the parent or by no controller at all."""
        revisions = self.client.list(ControllerRevision, parent.metadata.namespace, selector)
        owned = []
        for revision in revisions:
            ref = get_controller_of(revision)
            if ref is None or ref.uid == parent.metadata.uid:
                owned.append(revision)
        return owned

    def create_controller_revision(
        self, parent: Any, revision: ControllerRevision, collision_count: int | None
    ) -> tuple[ControllerRevision, int]:
        """Create ``revision`` under a hashed name for ``parent``.

        On a name collision with different data the collision count is raised
        and the name rehashed. Returns the stored revision and the final
        collision count.
        """
        if collision_count is None:
            raise ValueError("collisionCount should not be nil")
        namespace = parent.metadata.namespace
        clone = copy.deepcopy(revision)
        while True:
            hash_value = hash_controller_revision(revision, collision_count)
            clone.metadata.name = controller_revision_name(parent.metadata.name, hash_value)
            created = copy.deepcopy(clone)
            created.metadata.namespace = namespace
            try:
                self.client.create(created)
            except ApiError as err:
                if not isinstance(err, type(err)) or err.__class__.__name__ != "AlreadyExistsError":
                    raise
                exists = self.client.get(
                    ControllerRevision,
                    NamespacedName(namespace=namespace, name=clone.metadata.name),
                )
                if exists.data == clone.data:
                    return exists, collision_count
                collision_count += 1
                continue
            return created, collision_count

    def _refetch(self, key: NamespacedName) -> ControllerRevision | None:
        try:
            return self.client.get(ControllerRevision, key)
        except ApiError:
            return None

    def update_controller_revision(
        self, revision: ControllerRevision, new_revision: int
    ) -> ControllerRevision:
        """Set the revision number, retrying on conflicts, and return the result."""
        clone = copy.deepcopy(revision)
        key = NamespacedName(namespace=clone.metadata.namespace, name=clone.metadata.name)

        def attempt() -> None:
            nonlocal clone
            if clone.revision == new_revision:
                return
            clone.revision = new_revision
            try:
                self.client.update(clone)
            except ApiError:
                got = self._refetch(key)
                if got is not None:
                    clone = got
                raise

        _retry_on_conflict(attempt)
        return clone

    def delete_controller_revision(self, revision: ControllerRevision) -> None:
        """Delete the stored revision."""
        self.client.delete(revision)

    def adopt_controller_revision(
        self, parent: Any, api_version: str, kind: str, revision: ControllerRevision
    ) -> ControllerRevision:
        """Make ``parent`` the controlling owner of an unowned revision."""
        clone = copy.deepcopy(revision)
        key = NamespacedName(namespace=clone.metadata.namespace, name=clone.metadata.name)

        def attempt() -> None:
            nonlocal clone
            owner = get_controller_of(clone)
            if owner is not None:
                raise ValueError(f"attempt to adopt revision owned by {owner}")
            clone.metadata.owner_references.append(
                OwnerReference(
                    api_version=api_version,
                    kind=kind,
                    name=parent.metadata.name,
                    uid=parent.metadata.uid,
                    controller=True,
                    block_owner_deletion=True,
                )
            )
            try:
                self.client.update(clone)
            except ApiError:
                got = self._refetch(key)
                if got is not None:
                    clone = got
                raise

        _retry_on_conflict(attempt)
        return clone

    def release_controller_revision(
        self, parent: Any, revision: ControllerRevision
    ) -> ControllerRevision | None:
        """Drop the parent's owner references from a revision.

        Returns None when the revision is gone or the update is invalid.
        """
        clone = copy.deepcopy(revision)
        key = NamespacedName(namespace=clone.metadata.namespace, name=clone.metadata.name)

        def attempt() -> None:
            nonlocal clone
            owner = get_controller_of(clone)
            if owner is not None:
                raise ValueError(f"attempt to adopt revision owned by {owner}")
            clone.metadata.owner_references = [
                ref for ref in clone.metadata.owner_references if ref.uid != parent.metadata.uid
            ]
            try:
                self.client.update(clone)
            except ApiError:
                got = self._refetch(key)
                if got is not None:
                    clone = got
                raise

        try:
            _retry_on_conflict(attempt)
        except (NotFoundError, InvalidError):
            return None
        return clone