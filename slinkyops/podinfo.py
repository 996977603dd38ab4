"""Identity of a pod, serialisable as compact JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

_FIELDS = {"namespace": "namespace", "podname": "pod_name"}


@dataclass
class PodInfo:
    """The namespace and name of a pod."""

    namespace: str = ""
    pod_name: str = ""

    def to_string(self) -> str:
        """Return the compact JSON form of this pod info."""
        text = json.dumps(
            {"namespace": self.namespace, "podName": self.pod_name},
            separators=(",", ":"),
            ensure_ascii=False,
        )
        for char, escaped in _HTML_ESCAPES.items():
            text = text.replace(char, escaped)
        return text


def parse_into_pod_info(text: str | None, out: PodInfo) -> PodInfo:
    """Decode JSON ``text`` into ``out`` and return it.

    Keys match case-insensitively, unknown keys are ignored and absent or
    null keys leave ``out`` unchanged. Raises ValueError on bad input.
    """
    data = json.loads(text or "")
    if data is None:
        return out
    if not isinstance(data, dict):
        raise ValueError("cannot decode non-object into PodInfo")
    problem = None
    for key, value in data.items():
        attr = _FIELDS.get(key.lower())
        if attr is None or value is None:
            continue
        if not isinstance(value, str):
            problem = problem or ValueError(f"cannot decode {value!r} into field {key!r}")
            continue
        setattr(out, attr, value)
    if problem is not None:
        raise problem
    return out