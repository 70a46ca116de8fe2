import pytest

from slothgen.availability import sli_plugin, validate_labels

LABELS = {"owner": "team-a", "tier": "1"}


def test_query_without_filter():
    got = sli_plugin({}, LABELS, {"job": "svc"})
    assert got == (
        '\nsum(rate(http_request_duration_seconds_count{ job="svc",code=~"(5..|429)" }[{{.window}}]))'
        "\n/\n"
        'sum(rate(http_request_duration_seconds_count{ job="svc" }[{{.window}}]))'
    )


@pytest.mark.parametrize("raw_filter", ['k1="v1"', '{k1="v1"}', 'k1="v1",', '{k1="v1",}'])
def test_query_with_filter_is_sanitized(raw_filter):
    got = sli_plugin({}, LABELS, {"job": "svc", "filter": raw_filter})
    assert '{ k1="v1",job="svc",code=~"(5..|429)" }' in got
    assert '{ k1="v1",job="svc" }' in got


def test_query_with_multiple_filters():
    got = sli_plugin({}, LABELS, {"job": "svc", "filter": 'k1="v1",k2="v2"'})
    assert '{ k1="v1",k2="v2",job="svc" }' in got


def test_job_is_required():
    with pytest.raises(ValueError, match="job options is required"):
        sli_plugin({}, LABELS, {})


@pytest.mark.parametrize(
    "labels",
    [{"tier": "1"}, {"owner": "team-a"}, {"owner": "", "tier": "1"}, {}],
)
def test_required_labels(labels):
    with pytest.raises(ValueError, match="invalid labels"):
        sli_plugin({}, labels, {"job": "svc"})


def test_invalid_filter():
    with pytest.raises(ValueError, match="invalid prometheus filter"):
        sli_plugin({}, LABELS, {"job": "svc", "filter": "k1"})


def test_validate_labels_names_missing_key():
    with pytest.raises(ValueError, match='"tier" label is required'):
        validate_labels({"owner": "x"}, "owner", "tier")