from dataclasses import dataclass, replace
from datetime import timedelta

import pytest

from slothgen.log import NOOP
from slothgen.process import (
    Info,
    PromSLO,
    PromSLOGroup,
    Rule,
    SLOProcessorRequest,
    SLOProcessorResult,
    noop_processor,
    processor_from_plugin,
)


class _Recorder:
    def __init__(self):
        self.requests = []

    def process_slo(self, ctx, request, result):
        self.requests.append(request)
        result.slo_rules.alert_rules.rules.append(Rule(expr="test1"))
        result.slo_rules.alert_rules.interval = timedelta(minutes=42)


class _Failing:
    def process_slo(self, ctx, request, result):
        result.slo_rules.alert_rules.rules.append(Rule(expr="never"))
        raise RuntimeError("boom")


class _Relabel:
    def process_slo(self, ctx, request, result):
        request.slo = replace(request.slo, name="test-name")
        request.info = Info(version="test-ver", mode="test", spec="test-spec")


def _request():
    slo = PromSLO(id="test-id", service="test-svc", objective=99.9)
    return SLOProcessorRequest(slo=slo, slo_group=PromSLOGroup(slos=[slo], original_source="source"))


def test_config_is_passed_as_compact_json():
    seen = []
    processor_from_plugin(lambda config, logger: seen.append(config) or _Recorder(), NOOP, {"arg1": "val1"})
    assert seen == [b'{"arg1":"val1"}']


def test_none_config_is_json_null():
    seen = []
    processor_from_plugin(lambda config, logger: seen.append(config) or _Recorder(), NOOP, None)
    assert seen == [b"null"]


def test_dataclass_config_is_serialized():
    @dataclass
    class Cfg:
        optimized: bool

    seen = []
    processor_from_plugin(lambda config, logger: seen.append(config) or _Recorder(), NOOP, Cfg(True))
    assert seen == [b'{"optimized":true}']


def test_factory_receives_logger():
    seen = []
    processor_from_plugin(lambda config, logger: seen.append(logger) or _Recorder(), NOOP, None)
    assert seen == [NOOP]


def test_unserializable_config_raises():
    with pytest.raises(ValueError, match="could not marshal config"):
        processor_from_plugin(lambda c, l: _Recorder(), NOOP, {"bad": object()})


def test_factory_error_is_wrapped():
    def factory(config, logger):
        raise RuntimeError("nope")

    with pytest.raises(ValueError, match="could not create plugin"):
        processor_from_plugin(factory, NOOP, None)


def test_result_changes_are_copied_back():
    plugin = _Recorder()
    process = processor_from_plugin(lambda c, l: plugin, NOOP, None)
    req = _request()
    res = SLOProcessorResult()
    process(None, req, res)
    assert [r.expr for r in res.slo_rules.alert_rules.rules] == ["test1"]
    assert res.slo_rules.alert_rules.interval == timedelta(minutes=42)


def test_plugin_receives_original_source_and_slo():
    plugin = _Recorder()
    process = processor_from_plugin(lambda c, l: plugin, NOOP, None)
    req = _request()
    process(None, req, SLOProcessorResult())
    assert plugin.requests[0].original_source == "source"
    assert plugin.requests[0].slo == req.slo


def test_request_changes_are_copied_back():
    process = processor_from_plugin(lambda c, l: _Relabel(), NOOP, None)
    req = _request()
    process(None, req, SLOProcessorResult())
    assert req.slo.name == "test-name"
    assert req.info == Info(version="test-ver", mode="test", spec="test-spec")


def test_failing_plugin_leaves_result_untouched():
    process = processor_from_plugin(lambda c, l: _Failing(), NOOP, None)
    res = SLOProcessorResult()
    with pytest.raises(RuntimeError, match="boom"):
        process(None, _request(), res)
    assert res == SLOProcessorResult()


def test_processors_chain_accumulates():
    process = processor_from_plugin(lambda c, l: _Recorder(), NOOP, None)
    res = SLOProcessorResult()
    process(None, _request(), res)
    process(None, _request(), res)
    assert [r.expr for r in res.slo_rules.alert_rules.rules] == ["test1", "test1"]


def test_noop_processor_changes_nothing():
    req = _request()
    before = replace(req)
    res = SLOProcessorResult()
    noop_processor(None, req, res)
    assert res == SLOProcessorResult()
    assert req == before