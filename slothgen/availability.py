"""Example SLI plugin: availability error ratio of HTTP requests.

5xx and 429 responses count as error events.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

SLI_PLUGIN_VERSION = "prometheus/v1"
SLI_PLUGIN_ID = "getting_started_availability"

_QUERY = (
    "\n"
    'sum(rate(http_request_duration_seconds_count{{ {filter}job="{job}",code=~"(5..|429)" }}[{{{{.window}}}}]))\n'
    "/\n"
    'sum(rate(http_request_duration_seconds_count{{ {filter}job="{job}" }}[{{{{.window}}}}]))'
)

_FILTER_RE = re.compile(r'([^=]+="[^=,"]+",)+')


def _validate_labels(labels: Mapping[str, str], *required: str) -> None:
    for key in required:
        if not labels.get(key):
            raise ValueError(f'"{key}" label is required')


def sli_plugin(meta: Mapping[str, str], labels: Mapping[str, str], options: Mapping[str, str]) -> str:
    """Return the error ratio query; ``{{.window}}`` is left for the generator."""
    if "job" not in options:
        raise ValueError("job options is required")
    job = options["job"]

    try:
        _validate_labels(labels, "owner", "tier")
    except ValueError as err:
        raise ValueError(f"invalid labels: {err}") from err

    filter_ = options.get("filter", "")
    if filter_:
        filter_ = filter_.strip("{}").strip(",") + ","
        if not _FILTER_RE.search(filter_):
            raise ValueError(f"invalid prometheus filter: {filter_}")

    return _QUERY.format(filter=filter_, job=job)