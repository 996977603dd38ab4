import pytest

from slinkyops.podinfo import PodInfo, parse_into_pod_info


@pytest.mark.parametrize(
    "left,right,expected",
    [
        (PodInfo(), PodInfo(), True),
        (PodInfo("default", "foo"), PodInfo("default", "foo"), True),
        (PodInfo("default", "foo"), PodInfo(), False),
        (PodInfo("default", "foo"), PodInfo("default", "bar"), False),
        (PodInfo("default", "foo"), PodInfo("bar", "foo"), False),
    ],
)
def test_equal(left, right, expected):
    assert (left == right) is expected


def test_to_string_empty():
    assert PodInfo().to_string() == '{"namespace":"","podName":""}'


def test_to_string_populated():
    assert PodInfo("default", "foo").to_string() == '{"namespace":"default","podName":"foo"}'


def test_to_string_escapes_html():
    assert PodInfo("a<b", "c&d").to_string() == '{"namespace":"a\\u003cb","podName":"c\\u0026d"}'


def test_parse_empty_string():
    out = PodInfo()
    with pytest.raises(ValueError):
        parse_into_pod_info("", out)
    assert out == PodInfo()


def test_parse_none_text():
    out = PodInfo()
    with pytest.raises(ValueError):
        parse_into_pod_info(None, out)
    assert out == PodInfo()


def test_parse_empty_values():
    out = PodInfo()
    parse_into_pod_info('{"namespace":"","podName":""}', out)
    assert out == PodInfo()


def test_parse_overwrites():
    out = PodInfo("baz", "bar")
    result = parse_into_pod_info('{"namespace":"default","podName":"foo"}', out)
    assert out == PodInfo("default", "foo")
    assert result is out


def test_parse_round_trip():
    info = PodInfo("ns", "a<b>")
    assert parse_into_pod_info(info.to_string(), PodInfo()) == info


def test_parse_case_insensitive_and_partial():
    out = PodInfo("keep", "old")
    parse_into_pod_info('{"PODNAME":"new","other":1}', out)
    assert out == PodInfo("keep", "new")


def test_parse_wrong_type():
    with pytest.raises(ValueError):
        parse_into_pod_info('{"namespace":1}', PodInfo())


def test_parse_non_object():
    with pytest.raises(ValueError):
        parse_into_pod_info("[1, 2]", PodInfo())