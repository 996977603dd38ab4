from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest

from slinkyops.objects import (
    Client,
    InvalidError,
    NamespacedName,
    NotFoundError,
    ObjectMeta,
    OwnerReference,
    Pod,
    PodTemplateSpec,
)
from slinkyops.podcontrol import (
    EVENT_TYPE_NORMAL,
    EVENT_TYPE_WARNING,
    FAILED_CREATE_POD_REASON,
    SUCCESSFUL_CREATE_POD_REASON,
    SUCCESSFUL_DELETE_POD_REASON,
    EventRecorder,
    PodControl,
    get_pod_from_template,
    validate_controller_ref,
)


@dataclass
class ReplicationController:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)


def _controller():
    return ReplicationController(
        metadata=ObjectMeta(
            uid="uid-foobar", name="foobar", namespace="default", resource_version="18"
        ),
        template=PodTemplateSpec(
            metadata=ObjectMeta(labels={"name": "foo", "type": "production"}),
            spec={
                "containers": [{"image": "foo/bar", "imagePullPolicy": "IfNotPresent"}],
                "restartPolicy": "Always",
                "nodeSelector": {"baz": "blah"},
            },
        ),
    )


def _controller_ref(rc):
    return OwnerReference(
        api_version="v1",
        kind="Foo",
        name=rc.metadata.name,
        uid=rc.metadata.uid,
        controller=True,
        block_owner_deletion=True,
    )


def test_create_pods():
    rc = _controller()
    client, recorder = Client(), EventRecorder()
    pod = PodControl(client, recorder).create_pods("default", rc.template, rc, _controller_ref(rc))
    assert pod.metadata.name.startswith("foobar-")
    stored = client.get(Pod, NamespacedName("default", pod.metadata.name))
    assert stored.metadata.labels == {"name": "foo", "type": "production"}
    assert stored.metadata.owner_references == [_controller_ref(rc)]
    assert [e.reason for e in recorder.events] == [SUCCESSFUL_CREATE_POD_REASON]


def test_create_pods_invalid_template():
    rc = _controller()
    control = PodControl(Client(), EventRecorder())
    with pytest.raises(ValueError, match="no labels"):
        control.create_pods("default", PodTemplateSpec(), rc, _controller_ref(rc))


def test_create_pods_invalid_controller_ref():
    rc = _controller()
    control = PodControl(Client(), EventRecorder())
    with pytest.raises(ValueError, match="APIVersion"):
        control.create_pods("default", rc.template, rc, OwnerReference())


def test_create_pods_with_generate_name():
    rc = _controller()
    client = Client()
    pod = PodControl(client, EventRecorder()).create_pods_with_generate_name(
        "default", rc.template, rc, _controller_ref(rc), "custom-"
    )
    assert pod.metadata.name.startswith("custom-")
    assert client.get(Pod, NamespacedName("default", pod.metadata.name)).spec == rc.template.spec


def test_create_pods_with_generate_name_invalid():
    rc = _controller()
    control = PodControl(Client(), EventRecorder())
    with pytest.raises(ValueError):
        control.create_pods_with_generate_name(
            "default", PodTemplateSpec(), rc, _controller_ref(rc), ""
        )
    with pytest.raises(ValueError):
        control.create_pods_with_generate_name("default", rc.template, rc, OwnerReference(), "")


def test_create_this_pod():
    client = Client()
    pod = Pod(metadata=ObjectMeta(namespace="default", name="foo", labels={"foo": "bar"}))
    PodControl(client, EventRecorder()).create_this_pod(pod, _controller())
    assert client.get(Pod, NamespacedName("default", "foo")).metadata.labels == {"foo": "bar"}


def test_create_this_pod_none():
    with pytest.raises(ValueError):
        PodControl(Client(), EventRecorder()).create_this_pod(None, _controller())


def test_create_this_pod_no_name():
    recorder = EventRecorder()
    pod = Pod(metadata=ObjectMeta(labels={"foo": "bar"}))
    with pytest.raises(InvalidError):
        PodControl(Client(), recorder).create_this_pod(pod, _controller())
    assert [(e.event_type, e.reason) for e in recorder.events] == [
        (EVENT_TYPE_WARNING, FAILED_CREATE_POD_REASON)
    ]


def test_create_this_pod_no_labels():
    pod = Pod(metadata=ObjectMeta(namespace="default", name="foo"))
    with pytest.raises(ValueError, match="no labels"):
        PodControl(Client(), EventRecorder()).create_this_pod(pod, _controller())


def test_delete_pod():
    client = Client(Pod(metadata=ObjectMeta(namespace="default", name="foo")))
    recorder = EventRecorder()
    PodControl(client, recorder).delete_pod("default", "foo", _controller())
    assert client.list(Pod) == []
    assert [(e.event_type, e.reason, e.message) for e in recorder.events] == [
        (EVENT_TYPE_NORMAL, SUCCESSFUL_DELETE_POD_REASON, "Deleted pod: foo")
    ]


def test_delete_pod_not_found():
    recorder = EventRecorder()
    with pytest.raises(NotFoundError):
        PodControl(Client(), recorder).delete_pod("default", "foo", _controller())
    assert recorder.events == []


def test_patch_pod_sets_field():
    client = Client(Pod(metadata=ObjectMeta(namespace="default", name="foo")))
    pod = PodControl(client, EventRecorder()).patch_pod(
        "default", "foo", b'{"metadata":{"deletionTimestamp":"2024-01-01T00:00:00Z"}}'
    )
    expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert pod.metadata.deletion_timestamp == expected
    stored = client.get(Pod, NamespacedName("default", "foo"))
    assert stored.metadata.deletion_timestamp == expected


def test_patch_pod_clears_field():
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    client = Client(
        Pod(metadata=ObjectMeta(namespace="default", name="foo", deletion_timestamp=stamp))
    )
    PodControl(client, EventRecorder()).patch_pod(
        "default", "foo", b'{"metadata":{"deletionTimestamp":null}}'
    )
    assert client.get(Pod, NamespacedName("default", "foo")).metadata.deletion_timestamp is None


def test_patch_pod_missing():
    with pytest.raises(NotFoundError):
        PodControl(Client(), EventRecorder()).patch_pod("default", "foo", b"{}")


def test_get_pod_from_template_copies():
    rc = _controller()
    pod = get_pod_from_template(rc.template, rc, _controller_ref(rc))
    assert pod.metadata.generate_name == "foobar-"
    pod.metadata.labels["extra"] = "x"
    pod.spec["nodeSelector"]["baz"] = "changed"
    assert "extra" not in rc.template.metadata.labels
    assert rc.template.spec["nodeSelector"]["baz"] == "blah"


@pytest.mark.parametrize(
    "name, prefix",
    [("foobar", "foobar-"), ("FooBar", "FooBar"), ("a" * 253, "a" * 253)],
)
def test_get_pod_from_template_prefix(name, prefix):
    parent = ObjectMeta(name=name)
    pod = get_pod_from_template(PodTemplateSpec(), parent, None)
    assert pod.metadata.generate_name == prefix
    assert pod.metadata.owner_references == []


def test_get_pod_from_template_requires_metadata():
    with pytest.raises(ValueError):
        get_pod_from_template(PodTemplateSpec(), object(), None)


@pytest.mark.parametrize(
    "ref, message",
    [
        (None, "nil"),
        (OwnerReference(), "APIVersion"),
        (OwnerReference(api_version="v1"), "Kind"),
        (OwnerReference(api_version="v1", kind="Foo"), "Controller"),
        (OwnerReference(api_version="v1", kind="Foo", controller=True), "BlockOwnerDeletion"),
    ],
)
def test_validate_controller_ref_errors(ref, message):
    with pytest.raises(ValueError, match=message):
        validate_controller_ref(ref)


def test_validate_controller_ref_ok():
    ref = OwnerReference(api_version="v1", kind="Foo", controller=True, block_owner_deletion=True)
    assert validate_controller_ref(ref) is None