"""Example SLI plugin: HTTP availability error ratio query based on response status codes."""

from __future__ import annotations

import re
from collections.abc import Mapping
from string import Template

SLI_PLUGIN_VERSION = "prometheus/v1"
SLI_PLUGIN_ID = "getting_started_availability"

_QUERY_TEMPLATE = Template(
    "\n"
    'sum(rate(http_request_duration_seconds_count{ ${filter}job="${job}",code=~"(5..|429)" }[{{.window}}]))\n'
    "/\n"
    'sum(rate(http_request_duration_seconds_count{ ${filter}job="${job}" }[{{.window}}]))'
)

_FILTER_RE = re.compile(r'([^=]+="[^=,"]+",)+')


def validate_labels(labels: Mapping[str, str], *args: str) -> None:
    """Raise :class:`ValueError` if any of the required label keys is missing or empty."""
    for key in args:
        if not labels.get(key):
            raise ValueError(f'"{key}" label is required')


def sli_plugin(meta: Mapping[str, str], labels: Mapping[str, str], options: Mapping[str, str]) -> str:
    """Return an error ratio query counting 5xx and 429 responses as errors."""
    if "job" not in options:
        raise ValueError("job options is required")
    job = options["job"]

    try:
        validate_labels(labels, "owner", "tier")
    except ValueError as err:
        raise ValueError(f"invalid labels: {err}") from err

    query_filter = options.get("filter", "")
    if query_filter:
        query_filter = query_filter.strip("{}").strip(",") + ","
        if not _FILTER_RE.search(query_filter):
            raise ValueError(f"invalid prometheus filter: {query_filter}")

    return _QUERY_TEMPLATE.substitute(filter=query_filter, job=job)