# slinkyops

Building blocks for controllers that manage Slurm clusters whose nodes run as
pods. The package is pure Python and has no runtime dependencies.

## Installation

```
pip install slinkyops
```

## Modules

- `slinkyops.objects`: dataclass models (`NamespacedName`, `OwnerReference`,
  `ObjectMeta`, `PodCondition`, `PodStatus`, `Pod`, `PodTemplateSpec`,
  `ControllerRevision`), the errors `ApiError`, `NotFoundError`,
  `AlreadyExistsError`, `ConflictError` and `InvalidError`, and `Client`, a
  thread-safe in-memory object store with `get`, `list`, `create`, `update`,
  `delete` and `patch` (a JSON merge patch). Writes assign new resource
  versions; `create` fills in a name from `generate_name`. `key_func` gives the
  `namespace/name` key of an object and `get_controller_of` its controlling
  owner reference.
- `slinkyops.annotations`: `get_number_from_annotations` (32-bit integers,
  rejecting a leading `+` or leading zeros), `get_bool_from_annotations` and
  `get_time_from_annotations` (RFC 3339). An absent key gives `0`, `False` or
  `None`; a malformed value raises `ValueError`.
- `slinkyops.mathutil`: `clamp(val, a, b)`, where the range is taken from `a`
  and `b` in either order, and `get_scaled_value_from_int_or_percent`, which
  scales an integer or a `"N%"` string against a total and falls back to a
  default when the input is missing or malformed.
- `slinkyops.pods`: `is_pod_ready`, `is_running_and_ready`,
  `is_running_and_available`, `is_created`, `is_pending`, `is_failed`,
  `is_succeeded`, `is_terminating` and `is_healthy`.
- `slinkyops.batch`: `slow_start_batch(count, initial_batch_size, fn)` calls
  `fn(index)` in concurrent batches that double in size. It returns the number
  of successful calls, or stops after the first batch with a failure and raises
  `BatchError`, whose `successes` and `error` attributes hold the count and the
  first error.
- `slinkyops.stores`: thread-safe `DurationStore` (missing keys read as a zero
  `timedelta`) and `TimeStore` (missing keys read as `None`), each with `push`,
  `pop` and `peek`. The function given at construction, `greater` or `less`,
  decides whether a new value pushed to a key replaces the old one.
- `slinkyops.podinfo`: `PodInfo` with `to_string()` giving compact JSON, and
  `parse_into_pod_info(text, out)` decoding JSON into an existing `PodInfo`.
- `slinkyops.history`: `set_revision` and `get_revision` for the revision hash
  label, `hash_controller_revision`, `controller_revision_name`, and
  `HistoryControl`, which lists, creates (rehashing on name collisions and
  returning the revision with the final collision count), updates, deletes,
  adopts and releases controller revisions through a `Client`, retrying on
  conflicts.
- `slinkyops.podcontrol`: `PodControl` creates pods from a template or as
  given, deletes and patches them through a `Client`, and records events in an
  `EventRecorder`; `get_pod_from_template` and `validate_controller_ref` are
  available on their own.
- `slinkyops.clusters`: `Clusters`, a thread-safe registry keyed by
  `NamespacedName`. `add` stops any client it replaces and runs the new
  client's `start` in a background thread; `remove` calls `stop`.
  `ClusterClient` is a base client whose `start` blocks until `stop` is called.

## Example

```python
from datetime import timedelta

from slinkyops.mathutil import clamp
from slinkyops.stores import DurationStore, greater

store = DurationStore(greater)
store.push("slurm/node-0", timedelta(seconds=5))
store.push("slurm/node-0", timedelta(seconds=30))
assert store.pop("slurm/node-0") == timedelta(seconds=30)

assert clamp(15, 10, 0) == 10
```

## What it does not do

There is no command-line program and no controller loop. `Client` keeps
objects in memory only; the package does not connect to a cluster API server
or to Slurm, and `ClusterClient` does no work beyond waiting to be stopped.

## Tests

```
pip install "slinkyops[test]"
pytest
```