from datetime import timedelta

import pytest

from slothgen.alert import AlertGenerator
from slothgen.generate import (
    PluginNotFoundError,
    Request,
    Response,
    Service,
    SLOPluginEntry,
)
from slothgen.model import (
    SLO,
    AlertMeta,
    Info,
    MODE_TEST,
    Rule,
    RuleGroup,
    SLOGroup,
    SLOPluginMetadata,
    SLOPlugins,
    SLORules,
)
from slothgen.process import FunctionProcessor
from slothgen.windows import FSWindowsRepo


class FakeGetter:
    def __init__(self, entries):
        self.entries = entries
        self.calls = []

    def get_slo_plugin(self, ctx, plugin_id):
        self.calls.append(plugin_id)
        try:
            return self.entries[plugin_id]
        except KeyError:
            raise PluginNotFoundError(plugin_id) from None


class IntervalPlugin:
    def __init__(self, interval):
        self.interval = interval

    def process_slo(self, ctx, request, result):
        result.slo_rules.alert_rules.interval = self.interval


class AppenderPlugin:
    def __init__(self, rule):
        self.rule = rule

    def process_slo(self, ctx, request, result):
        result.slo_rules.alert_rules.rules.append(self.rule)


def appender_entry(plugin_id, expr):
    return SLOPluginEntry(id=plugin_id, plugin_v1_factory=lambda data, logger: AppenderPlugin(Rule(expr=expr)))


def set_page_alert(ctx, request, result):
    result.slo_rules.alert_rules = RuleGroup(rules=[Rule(alert=request.slo.page_alert_meta.name)])


def make_slo(**overrides):
    values = dict(
        id="test-id",
        name="test-name",
        service="test-svc",
        sli={
            "error_query": 'rate(my_metric{error="true"}[{{.window}}])',
            "total_query": "rate(my_metric[{{.window}}])",
        },
        time_window=timedelta(days=30),
        objective=99.9,
        labels={"test_label": "label_1"},
        page_alert_meta=AlertMeta(
            name="p_alert_test_name",
            labels={"p_alert_label": "p_label_al_1"},
            annotations={"p_alert_annot": "p_label_an_1"},
        ),
        ticket_alert_meta=AlertMeta(disable=True),
    )
    values.update(overrides)
    return SLO(**values)


def make_service(defaults=(), getter=None):
    return Service(AlertGenerator(FSWindowsRepo()), list(defaults), getter)


INFO = Info(version="test-ver", mode=MODE_TEST, spec="test-spec")
EXTRA = {"extra_k1": "extra_v1", "extra_k2": "extra_v2"}


def test_no_slos_fails():
    with pytest.raises(ValueError, match="at least one SLO is required"):
        make_service().generate(Request())


def test_repeated_slo_ids_fail():
    group = SLOGroup(slos=[make_slo(), make_slo()])
    with pytest.raises(ValueError, match="repeated"):
        make_service().generate(Request(slo_group=group))


def test_alert_generator_is_required():
    with pytest.raises(ValueError, match="alert generator is required"):
        Service(None)


def test_plugins_run_after_defaults_and_labels_are_merged():
    getter = FakeGetter(
        {
            "test-plugin1": SLOPluginEntry(
                "test-plugin1", lambda data, logger: IntervalPlugin(timedelta(minutes=42))
            ),
            "test-plugin2": SLOPluginEntry(
                "test-plugin2", lambda data, logger: IntervalPlugin(timedelta(minutes=99))
            ),
        }
    )
    slo = make_slo(
        plugins=SLOPlugins(
            plugins=[
                SLOPluginMetadata(id="test-plugin1", config={"arg1": "val1"}),
                SLOPluginMetadata(id="test-plugin2", config={"arg2": "val2"}),
            ]
        )
    )
    request = Request(info=INFO, extra_labels=EXTRA, slo_group=SLOGroup(slos=[slo]))

    response = make_service([FunctionProcessor(set_page_alert)], getter).generate(request)

    assert getter.calls == ["test-plugin1", "test-plugin2"]
    assert len(response.prometheus_slos) == 1
    result = response.prometheus_slos[0]
    assert result.slo.labels == {
        "test_label": "label_1",
        "extra_k1": "extra_v1",
        "extra_k2": "extra_v2",
    }
    assert result.slo.plugins == slo.plugins
    assert result.slo_rules.alert_rules.interval == timedelta(minutes=99)
    assert [r.alert for r in result.slo_rules.alert_rules.rules] == ["p_alert_test_name"]
    # The request's own SLO keeps its labels.
    assert slo.labels == {"test_label": "label_1"}


def test_plugins_run_in_priority_order_around_defaults():
    priorities = {
        "test-plugin1": 10,
        "test-plugin2": -99999,
        "test-plugin3": -1,
        "test-plugin4": 9999,
        "test-plugin5": -20,
        "test-plugin6": 0,
        "test-plugin7": 1,
    }
    getter = FakeGetter(
        {pid: appender_entry(pid, "test" + pid[-1]) for pid in priorities}
    )
    slo = make_slo(
        plugins=SLOPlugins(
            plugins=[SLOPluginMetadata(id=pid, priority=prio) for pid, prio in priorities.items()]
        )
    )
    request = Request(info=INFO, extra_labels=EXTRA, slo_group=SLOGroup(slos=[slo]))

    response = make_service([FunctionProcessor(set_page_alert)], getter).generate(request)

    rules = response.prometheus_slos[0].slo_rules.alert_rules.rules
    assert rules == [
        Rule(alert="p_alert_test_name"),
        Rule(expr="test6"),
        Rule(expr="test7"),
        Rule(expr="test1"),
        Rule(expr="test4"),
    ]


def test_override_default_plugins_skips_defaults():
    getter = FakeGetter({"test-plugin1": appender_entry("test-plugin1", "test1")})
    slo = make_slo(
        plugins=SLOPlugins(
            override_default_plugins=True,
            plugins=[SLOPluginMetadata(id="test-plugin1", priority=10)],
        )
    )
    request = Request(info=INFO, slo_group=SLOGroup(slos=[slo]))

    response = make_service([FunctionProcessor(set_page_alert)], getter).generate(request)

    assert response == Response(
        prometheus_slos=[
            response.prometheus_slos[0].__class__(
                slo=slo,
                slo_rules=SLORules(alert_rules=RuleGroup(rules=[Rule(expr="test1")])),
            )
        ]
    )


def test_processors_receive_info_and_alerts():
    seen = []

    def capture(ctx, request, result):
        seen.append(request)

    request = Request(info=INFO, slo_group=SLOGroup(slos=[make_slo()]))
    make_service([FunctionProcessor(capture)]).generate(request)

    assert len(seen) == 1
    assert seen[0].info == INFO
    page_quick = seen[0].mwmb_alert_group.page_quick
    assert page_quick.id == "test-id-page-quick"
    assert page_quick.burn_rate_factor == 14.4
    assert page_quick.error_budget == 0.09999999999999432
    assert seen[0].mwmb_alert_group.ticket_slow.burn_rate_factor == 1


def test_missing_plugin_fails():
    slo = make_slo(plugins=SLOPlugins(plugins=[SLOPluginMetadata(id="unknown")]))
    with pytest.raises(RuntimeError, match="could not generate 'test-id' slo") as excinfo:
        make_service().generate(Request(slo_group=SLOGroup(slos=[slo])))
    assert isinstance(excinfo.value.__cause__, PluginNotFoundError)


def test_unsupported_time_window_fails():
    slo = make_slo(time_window=timedelta(days=42))
    with pytest.raises(RuntimeError, match="not supported"):
        make_service().generate(Request(slo_group=SLOGroup(slos=[slo])))


def test_failing_processor_fails_generation():
    def fail(ctx, request, result):
        raise ValueError("invalid objective")

    slo = make_slo(objective=101)
    with pytest.raises(RuntimeError, match="slo processor failed: invalid objective"):
        make_service([FunctionProcessor(fail)]).generate(Request(slo_group=SLOGroup(slos=[slo])))


def test_results_follow_slo_order():
    group = SLOGroup(slos=[make_slo(id="b"), make_slo(id="a")])
    response = make_service().generate(Request(slo_group=group))
    assert [r.slo.id for r in response.prometheus_slos] == ["b", "a"]
    assert all(r.slo_rules == SLORules() for r in response.prometheus_slos)