# slothgen

Building blocks for generating Prometheus SLO rules:

- A catalog of multiwindow, multi-burn-rate alert windows for each SLO period, with burn-rate calculation.
- Generation of the page and ticket alert definitions of an SLO from that catalog.
- A service that runs each SLO of a group through a chain of processors and SLO plugins.
- Mapping of the resulting rules to a Prometheus Operator `PrometheusRule` document.
- A handler for `PrometheusServiceLevel` Kubernetes objects.
- Helpers for splitting multi-document YAML and discovering YAML manifests, and an example SLI plugin.

## Installation

```
pip install .
```

Add the test extra to run the tests:

```
pip install ".[test]"
pytest
```

## Command line

The only command is `version`, which prints the version string (`dev`) to stdout:

```
slothgen version
slothgen --no-log version
slothgen --debug --logger json version
```

These global flags come before the command:

| Flag | Meaning | Environment default |
| --- | --- | --- |
| `--debug` | Enable debug logging. | `SLOTH_DEBUG` |
| `--no-log` | Disable the logger. | `SLOTH_NO_LOG` |
| `--no-color` | Disable coloured log output. | `SLOTH_NO_COLOR` |
| `--logger {default,json}` | Select the log format. | `SLOTH_LOGGER` |

The boolean environment variables are true when set to `1`, `t` or `true`. Logs go to stderr. On failure the command writes `error: <message>` to stderr and exits with status 1.

`slothgen.cli.run(args, stdout, stderr)` runs the same command line from code and raises on error. `slothgen.cli.main(argv=None)` returns the exit code.

## Library use

### Alert windows and burn rates

`slothgen.windows.FSWindowsRepo()` holds built-in windows for the 28-day and 30-day SLO periods. For both periods the page windows consume 2% of the budget over 5m/1h and 5% over 30m/6h. The ticket windows consume 10% over 2h/1d and 10% over 6h/3d.

`FSWindowsRepo(path)` replaces the built-in catalog. It loads every `.yaml` and `.yml` file under the directory, recursively. Each file must be an `AlertWindows` document with `apiVersion: sloth.slok.dev/v1`:

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

If two files define the same period with identical windows, the repo logs a warning. If they define it with different windows, it raises `WindowsError`.

Other parts of `slothgen.windows`:

- `get_windows(period)` returns a `Windows`, or raises `WindowsError` when the period is missing.
- `load_windows(data)` parses and validates one YAML document.
- `Windows.speed_page_quick()` and the matching methods return the burn-rate factors.
- `parse_duration` and `format_duration` convert between Prometheus-style durations (`30d`, `1h30m`) and `timedelta`.

`slothgen.alert.Generator` turns an `SLO` into a `MWMBAlertGroup`:

```python
from datetime import timedelta

from slothgen.alert import SLO, Generator
from slothgen.windows import FSWindowsRepo

group = Generator(FSWindowsRepo()).generate_mwmb_alerts(
    SLO(id="svc-slo", time_window=timedelta(days=30), objective=99.9)
)
print(group.page_quick.burn_rate_factor)  # 14.4
```

### Running SLOs through processors

`slothgen.process` defines the data model:

- `Info`, `Rule`, `RuleGroup`, `SLORules`, `PromSLO`, `PromSLOGroup` and `PluginMetadata`.
- The processor request and result types.

A processor is a callable `(ctx, request, result)`. `noop_processor` does nothing.

`processor_from_plugin(factory, logger, config)` wraps an SLO plugin as a processor. It encodes `config` as JSON and calls `factory(config_bytes, logger)`. The object the factory returns must have a `process_slo(ctx, plugin_request, plugin_result)` method.

`slothgen.generate.Service(alert_generator, ...)` processes a `Request`:

1. It rejects an empty group or repeated SLO IDs.
2. It merges `extra_labels` into each SLO's labels.
3. It generates the SLO's alert definitions.
4. It runs the processors.

The processors run in this order:

1. SLO plugins with a negative priority.
2. The `validate_processor`, `sli_rules_processor`, `alert_rules_processor` and `metadata_rules_processor` given to the service.
3. The remaining SLO plugins.

Plugins run by ascending priority, and plugins with equal priority keep their order. They are looked up through `plugin_getter.get_slo_plugin(ctx, id)`, which returns an `SLOPlugin`. Without a getter, any plugin reference raises `PluginNotFoundError`. The service returns a `Response` with one `SLOResult` per SLO.

`merge_labels(*maps)` merges label maps; later maps win.

### Prometheus Operator mapping

`slothgen.modelmap.map_to_prometheus_operator(kmeta, slos)` builds a `PrometheusRule` document as a dict. It adds the `app.kubernetes.io/component: SLO` and `app.kubernetes.io/managed-by: sloth` labels. For each SLO it writes the non-empty groups `sloth-slo-sli-recordings-<id>`, `sloth-slo-meta-recordings-<id>` and `sloth-slo-alerts-<id>`. It raises `ValueError` for an empty list and `NoSLORulesError` when no group has rules.

### Kubernetes handler

`slothgen.kubecontroller.Handler` takes a generator, a spec loader, a repository and a status storer, all of them required.

`handle(obj, ctx)` skips a `PrometheusServiceLevel` in either of two cases:

- It is being deleted.
- It is unchanged since its last successful generation, and that generation is more recent than `ignore_handle_before` (3 minutes by default).

Otherwise the handler loads the spec, generates the rules and stores them with a `K8sMeta`. It reports the outcome, including any error, to the status storer. Other object types are logged and ignored.

### Helpers

- `slothgen.helpers.split_yaml(data)` removes comment lines and splits on `---`. It returns only the non-empty documents.
- `slothgen.helpers.discover_slo_manifests(path, exclude, include, logger)` lists the `.yml` and `.yaml` files under `path` in sorted walk order. Paths that match `exclude` are dropped. When `include` is given, only paths that match it are kept.
- `slothgen.availability.sli_plugin(meta, labels, options)` is an example SLI plugin. It requires the `job` option and the `owner` and `tier` labels, and accepts an optional `filter` option. It returns an HTTP error-ratio query that counts 5xx and 429 responses as errors.

### Logging

`slothgen.log` provides:

- A `Logger` interface.
- `NoopLogger` and its instance `NOOP`.
- `StdLogger`, which writes through the `logging` module with key/value fields as text or JSON.
- `ctx_with_values` and `values_from_ctx`, which carry log fields in a context mapping.

## What this package does not do

- It does not include the processors that write SLI error-ratio recording rules, metadata recording rules or alert rules. When `Service` is not given them, those steps do nothing.
- It does not load SLO spec files, and it has no `generate` or `validate` commands.
- It does not write rule files.
- It does not connect to Kubernetes. `Handler` needs a spec loader, a repository and a status storer supplied by the caller, and the package has no controller loop, metrics server or hot-reload endpoint.