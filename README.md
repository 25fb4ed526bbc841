# slothgen

Building blocks for turning service level objectives into Prometheus rules.

slothgen does three main jobs:

- It works out **multiwindow, multi-burn-rate alerts** for an SLO. It reads them from a catalog of alert windows, keyed by SLO period.
- It runs each SLO through an **ordered chain of processors**. Together these fill in three rule groups: SLI error-ratio recording rules, metadata recording rules and alerting rules.
- It maps the generated rules onto a **Prometheus Operator `PrometheusRule`** document.

## Installation

```
pip install slothgen
```

## Command line

The `slothgen` command has a single subcommand, `version`. It prints the version.

```
slothgen version
slothgen --no-log version
slothgen --debug --logger json version
```

Global flags:

| Flag | Environment variable | Effect |
| --- | --- | --- |
| `--debug` | `SLOTH_DEBUG` | Enable debug logging. |
| `--no-log` | `SLOTH_NO_LOG` | Turn logging off. |
| `--no-color` | `SLOTH_NO_COLOR` | Turn colours off in the text log format. |
| `--logger {default,json}` | `SLOTH_LOGGER` | Choose the log format. The default is `default`. |

The boolean variables accept `1`, `t` or `true`.

Log output goes to stderr. When something fails, the command prints `error: <message>` to stderr and exits with status 1.

## Alert windows

`slothgen.windows.FSWindowsRepo` is the catalog of alert windows.

- Called with no directory, it uses the built-in catalog from `default_windows()`. That catalog holds the SRE workbook windows for 30-day and 28-day periods.
- Given a directory, it loads every `.yaml` or `.yml` file found recursively beneath it, and the built-in catalog is not used.

Loading the same period twice with identical content only logs a warning. Loading it twice with different content raises `ValueError`.

```yaml
apiVersion: sloth.slok.dev/v1
kind: AlertWindows
spec:
  sloPeriod: 7d
  page:
    quick: {errorBudgetPercent: 8, shortWindow: 5m, longWindow: 1h}
    slow: {errorBudgetPercent: 12.5, shortWindow: 30m, longWindow: 6h}
  ticket:
    quick: {errorBudgetPercent: 20, shortWindow: 2h, longWindow: 1d}
    slow: {errorBudgetPercent: 42, shortWindow: 6h, longWindow: 3d}
```

`load_windows(data)` parses and validates one document of this kind. `get_windows(period)` raises `LookupError` when a period is not in the catalog.

Durations use the Prometheus notation, for example `5m`, `1h30m`, `30d` or `1w`. `slothgen.durations.parse_duration` and `format_duration` convert between these strings and `timedelta`.

## Multiwindow multi-burn alerts

```python
from datetime import timedelta

from slothgen.alert import SLO, AlertGenerator
from slothgen.windows import FSWindowsRepo

generator = AlertGenerator(FSWindowsRepo(None, None))
alerts = generator.generate_mwmb_alerts(
    SLO(id="api-availability", time_window=timedelta(days=30), objective=99.9)
)
print(alerts.page_quick.id)                 # api-availability-page-quick
print(alerts.page_quick.burn_rate_factor)   # 14.4
```

The result is a `slothgen.model.MWMBAlertGroup` with four members: `page_quick`, `page_slow`, `ticket_quick` and `ticket_slow`. Each one holds:

- its short and long windows,
- its burn-rate factor,
- the error budget, which is `100 - objective`,
- a severity, either `AlertSeverity.PAGE` or `AlertSeverity.TICKET`.

An SLO period that is not in the catalog raises `ValueError`.

## Generating rules

`slothgen.generate.Service` runs each SLO of an `SLOGroup` through its processors:

1. The SLO's plugins with a negative priority.
2. The default processors given to the service. These are skipped when `slo.plugins.override_default_plugins` is set.
3. The SLO's plugins with priority zero or higher.

Plugins are ordered stably by priority.

```python
from datetime import timedelta

from slothgen.alert import AlertGenerator
from slothgen.generate import Request, Service
from slothgen.model import SLO, Rule, SLOGroup
from slothgen.process import FunctionProcessor
from slothgen.windows import FSWindowsRepo


def add_info(ctx, request, result):
    result.slo_rules.metadata_rec_rules.rules.append(
        Rule(record="sloth_slo_info", expr="vector(1)", labels=dict(request.slo.labels))
    )


service = Service(AlertGenerator(FSWindowsRepo(None, None)), [FunctionProcessor(add_info)], None, None)
response = service.generate(
    Request(
        extra_labels={"team": "core"},
        slo_group=SLOGroup(
            slos=[SLO(id="api-availability", time_window=timedelta(days=30), objective=99.9)]
        ),
    )
)
rules = response.prometheus_slos[0].slo_rules
```

The service has these rules:

- The group must hold at least one SLO, and SLO IDs must be unique. Otherwise it raises `ValueError`.
- Extra labels are merged into each SLO's labels, and the merged labels win.
- A failure while generating one SLO is raised as `RuntimeError`.

### Plugins

The service finds plugins through a `plugin_getter`. This is any object with a `get_slo_plugin(ctx, plugin_id)` method that returns a `slothgen.generate.SLOPluginEntry`. When the getter cannot find a plugin, generation fails with `PluginNotFoundError`.

An entry's `plugin_v1_factory` is called with two arguments:

- the plugin configuration encoded as compact JSON bytes,
- a logger.

It must return an object with a `process_slo(ctx, request, result)` method.

The module `slothgen.process` also offers:

- `processor_from_plugin`, which wraps a factory as a processor,
- `FunctionProcessor`, which wraps a plain function,
- `noop_processor()`.

## Prometheus Operator output

`slothgen.modelmap.map_model_to_prometheus_operator(kmeta, slos)` returns a `PrometheusRule` document as a dict. In that document:

- Each non-empty rule group of each SLO becomes a group named `sloth-slo-sli-recordings-<id>`, `sloth-slo-meta-recordings-<id>` or `sloth-slo-alerts-<id>`.
- The labels `app.kubernetes.io/component: SLO` and `app.kubernetes.io/managed-by: sloth` are added.

An empty list of SLOs raises `ValueError`. When there are no rules at all, it raises `NoSLORulesError`.

## Kubernetes handler

`slothgen.kubecontroller.Handler` handles `PrometheusServiceLevel` objects. For each one it does the following:

1. It loads the object with a given spec loader.
2. It generates the rules with a given generator.
3. It stores them through a given repository.
4. It always reports the outcome to a given status storer.

Some objects are skipped:

- objects that are being deleted,
- objects whose spec has not changed since a success less than `ignore_handle_before` ago. That setting defaults to 3 minutes.

Objects of other types are ignored with a warning.

## Other helpers

- `slothgen.helpers.split_yaml` splits multi-document YAML and drops comment lines.
- `slothgen.helpers.discover_slo_manifests` finds YAML files under a path in lexical order. It takes exclude and include regexes, and exclude takes precedence.
- `slothgen.availability.sli_plugin` is an example SLI plugin. It builds an HTTP availability error-ratio query in which 5xx and 429 responses count as errors. It requires the `job` option and the `owner` and `tier` labels.
- `slothgen.log` provides a small structured logger interface with two implementations: `StdLogger`, backed by `logging`, and `NoopLogger`.

## What slothgen does not do

- **No built-in rule processors.** No processor ships that writes SLI recording rules, metadata rules or alert rules. The caller supplies the processors that do this.
- **No SLO spec reading.** Nothing loads SLO specs in any format.
- **No file output.** Nothing writes rules to files.
- **No further commands.** There is no `generate` or `validate` command.
- **No running controller.** Nothing connects to a Kubernetes cluster. The handler's spec loader, repository and status storer must be provided by the caller.