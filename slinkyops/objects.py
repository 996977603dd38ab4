"""Kubernetes-style object model and an in-memory API client."""

from __future__ import annotations

import base64
import binascii
import copy
import json
import re
import secrets
import threading
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from typing import Any

POD_PENDING = "Pending"
POD_RUNNING = "Running"
POD_SUCCEEDED = "Succeeded"
POD_FAILED = "Failed"
POD_UNKNOWN = "Unknown"

POD_READY = "Ready"

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"

NAMESPACE_DEFAULT = "default"

_NAME_SUFFIX_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"
_NAME_SUFFIX_LENGTH = 5


@dataclass(frozen=True)
class NamespacedName:
    """A namespace and name pair identifying an object."""

    namespace: str = ""
    name: str = ""

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class OwnerReference:
    """A reference from an object to the object that owns it."""

    api_version: str = ""
    kind: str = ""
    name: str = ""
    uid: str = ""
    controller: bool | None = None
    block_owner_deletion: bool | None = None


@dataclass
class ObjectMeta:
    """Metadata common to every stored object."""

    name: str = ""
    namespace: str = ""
    uid: str = ""
    generate_name: str = ""
    resource_version: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    finalizers: list[str] = field(default_factory=list)
    owner_references: list[OwnerReference] = field(default_factory=list)
    deletion_timestamp: datetime | None = None

    @property
    def metadata(self) -> ObjectMeta:
        """The metadata itself, so bare metadata can stand in for an object."""
        return self


@dataclass
class PodCondition:
    """One observed condition of a pod."""

    type: str = ""
    status: str = ""
    last_transition_time: datetime | None = None


@dataclass
class PodStatus:
    """The observed state of a pod."""

    phase: str = ""
    conditions: list[PodCondition] = field(default_factory=list)


@dataclass
class Pod:
    """A pod: metadata, a free-form spec and an observed status."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: dict[str, Any] = field(default_factory=dict)
    status: PodStatus = field(default_factory=PodStatus)


@dataclass
class PodTemplateSpec:
    """The template that new pods are stamped out from."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: dict[str, Any] = field(default_factory=dict)


@dataclass
class ControllerRevision:
    """An immutable snapshot of a controller's state."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    data: bytes = b""
    revision: int = 0


class ApiError(Exception):
    """An error reported by the API client."""


class NotFoundError(ApiError):
    """The requested object does not exist."""


class AlreadyExistsError(ApiError):
    """An object with the same kind, namespace and name already exists."""


class ConflictError(ApiError):
    """The object was changed since it was read."""


class InvalidError(ApiError):
    """The request or the object is not valid."""


def key_func(obj: Any) -> str:
    """Return the "namespace/name" key of an object."""
    meta = obj.metadata
    return str(NamespacedName(namespace=meta.namespace, name=meta.name))


def get_controller_of(obj: Any) -> OwnerReference | None:
    """Return the owner reference marked as controller, if any."""
    return next((ref for ref in obj.metadata.owner_references if ref.controller), None)


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _merge_dicts(base: dict, patch: dict) -> dict:
    merged = dict(base)
    for key, value in patch.items():
        if value is None:
            merged.pop(key, None)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dicts(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _parse_timestamp(value: str) -> datetime:
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidError(f"invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        raise InvalidError(f"timestamp {value!r} has no time zone")
    return parsed


def _apply_patch(target: Any, patch: dict) -> None:
    names = {f.name for f in fields(target)}
    for key, value in patch.items():
        attr = _snake_case(key)
        if attr not in names:
            raise InvalidError(f"unknown field {key!r}")
        current = getattr(target, attr)
        if is_dataclass(current):
            if not isinstance(value, dict):
                raise InvalidError(f"field {key!r} must be an object")
            _apply_patch(current, value)
        elif isinstance(current, dict):
            if value is None:
                setattr(target, attr, {})
            elif isinstance(value, dict):
                setattr(target, attr, _merge_dicts(current, value))
            else:
                raise InvalidError(f"field {key!r} must be an object")
        elif attr.endswith("timestamp") or attr.endswith("_time"):
            if value is None:
                setattr(target, attr, None)
            elif isinstance(value, str):
                setattr(target, attr, _parse_timestamp(value))
            else:
                raise InvalidError(f"field {key!r} must be a timestamp")
        elif isinstance(current, list):
            if not isinstance(value, list) or any(isinstance(v, dict) for v in value):
                raise InvalidError(f"field {key!r} cannot be patched with {value!r}")
            if any(is_dataclass(v) for v in current):
                raise InvalidError(f"field {key!r} cannot be patched")
            setattr(target, attr, list(value))
        elif isinstance(current, bytes):
            if not isinstance(value, str):
                raise InvalidError(f"field {key!r} must be base64 text")
            try:
                setattr(target, attr, base64.b64decode(value, validate=True))
            except binascii.Error as exc:
                raise InvalidError(f"field {key!r} is not valid base64") from exc
        elif current is None or type(value) is type(current):
            setattr(target, attr, value)
        else:
            raise InvalidError(f"field {key!r} has the wrong type")


class Client:
    """A thread-safe in-memory store with API-server semantics.

    Objects are keyed by their class, namespace and name. Stored objects are
    copies; every write assigns a new resource version.
    """

    def __init__(self, *objects: Any) -> None:
        self._lock = threading.Lock()
        self._objects: dict[tuple[str, str, str], Any] = {}
        for obj in objects:
            stored = copy.deepcopy(obj)
            if not stored.metadata.name:
                raise InvalidError("object has no name")
            if not stored.metadata.resource_version:
                stored.metadata.resource_version = "999"
            key = self._key_of(stored)
            if key in self._objects:
                raise AlreadyExistsError(f"{key[0]} {key_func(stored)!r} already exists")
            self._objects[key] = stored

    @staticmethod
    def _key_of(obj: Any) -> tuple[str, str, str]:
        return type(obj).__name__, obj.metadata.namespace, obj.metadata.name

    @staticmethod
    def _next_version(version: str) -> str:
        try:
            return str(int(version) + 1)
        except ValueError:
            return "1"

    def get(self, kind: type, key: NamespacedName) -> Any:
        """Return a copy of the stored object of this kind and key."""
        with self._lock:
            stored = self._objects.get((kind.__name__, key.namespace, key.name))
            if stored is None:
                raise NotFoundError(f'{kind.__name__} "{key.name}" not found')
            return copy.deepcopy(stored)

    def list(self, kind: type, namespace: str = "", selector: dict[str, str] | None = None) -> list:
        """Return copies of the objects of a kind matching namespace and labels.

        An empty namespace matches every namespace; a missing selector matches
        every object.
        """
        wanted = selector or {}
        with self._lock:
            found = [
                copy.deepcopy(obj)
                for (obj_kind, obj_ns, _), obj in self._objects.items()
                if obj_kind == kind.__name__
                and (not namespace or obj_ns == namespace)
                and all(obj.metadata.labels.get(k) == v for k, v in wanted.items())
            ]
        return sorted(found, key=lambda o: (o.metadata.namespace, o.metadata.name))

    def create(self, obj: Any) -> None:
        """Store a new object, filling in its name and resource version."""
        meta = obj.metadata
        if meta.resource_version:
            raise InvalidError("resourceVersion can not be set for create requests")
        with self._lock:
            if not meta.name and meta.generate_name:
                while True:
                    suffix = "".join(
                        secrets.choice(_NAME_SUFFIX_ALPHABET) for _ in range(_NAME_SUFFIX_LENGTH)
                    )
                    candidate = meta.generate_name + suffix
                    if (type(obj).__name__, meta.namespace, candidate) not in self._objects:
                        meta.name = candidate
                        break
            if not meta.name:
                raise InvalidError("name or generateName is required")
            key = self._key_of(obj)
            if key in self._objects:
                raise AlreadyExistsError(f'{key[0]} "{meta.name}" already exists')
            meta.resource_version = "1"
            self._objects[key] = copy.deepcopy(obj)

    def update(self, obj: Any) -> None:
        """Replace a stored object, checking its resource version."""
        with self._lock:
            key = self._key_of(obj)
            stored = self._objects.get(key)
            if stored is None:
                raise NotFoundError(f'{key[0]} "{obj.metadata.name}" not found')
            current = stored.metadata.resource_version
            if obj.metadata.resource_version and obj.metadata.resource_version != current:
                raise ConflictError(
                    f'{key[0]} "{obj.metadata.name}": the object has been modified'
                )
            obj.metadata.resource_version = self._next_version(current)
            self._objects[key] = copy.deepcopy(obj)

    def delete(self, obj: Any) -> None:
        """Remove a stored object."""
        with self._lock:
            key = self._key_of(obj)
            if key not in self._objects:
                raise NotFoundError(f'{key[0]} "{obj.metadata.name}" not found')
            del self._objects[key]

    def patch(self, obj: Any, data: bytes | str) -> None:
        """Apply a JSON merge patch to a stored object and refresh ``obj``."""
        try:
            patch = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidError(f"invalid patch: {exc}") from exc
        if not isinstance(patch, dict):
            raise InvalidError("patch must be a JSON object")
        with self._lock:
            key = self._key_of(obj)
            stored = self._objects.get(key)
            if stored is None:
                raise NotFoundError(f'{key[0]} "{obj.metadata.name}" not found')
            current = stored.metadata.resource_version
            patched = copy.deepcopy(stored)
            _apply_patch(patched, patch)
            if patched.metadata.resource_version != current:
                raise ConflictError(
                    f'{key[0]} "{obj.metadata.name}": the object has been modified'
                )
            if self._key_of(patched) != key:
                raise InvalidError("patch may not change the name or namespace")
            patched.metadata.resource_version = self._next_version(current)
            self._objects[key] = patched
            for f in fields(obj):
                setattr(obj, f.name, copy.deepcopy(getattr(patched, f.name)))