"""Prometheus style duration strings (``30d``, ``1h30m``, ``1w``...)."""

from __future__ import annotations

import re
from datetime import timedelta

_MS_PER_UNIT = (
    ("y", 365 * 24 * 3600 * 1000),
    ("w", 7 * 24 * 3600 * 1000),
    ("d", 24 * 3600 * 1000),
    ("h", 3600 * 1000),
    ("m", 60 * 1000),
    ("s", 1000),
    ("ms", 1),
)

# Units that are only used when they divide the duration exactly.
_EXACT_UNITS = frozenset({"y", "w"})

_PATTERN = re.compile(
    r"(?:(\d+)y)?(?:(\d+)w)?(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?(?:(\d+)ms)?"
)

_MILLISECOND = timedelta(milliseconds=1)


def parse_duration(text: str) -> timedelta:
    """Parse a Prometheus duration string; raises ``ValueError`` when invalid."""
    if text == "":
        raise ValueError("empty duration string")
    if text == "0":
        return timedelta(0)
    match = _PATTERN.fullmatch(text)
    if match is None:
        raise ValueError(f"not a valid duration string: {text!r}")
    total_ms = sum(
        int(amount) * unit_ms
        for amount, (_, unit_ms) in zip(match.groups(), _MS_PER_UNIT)
        if amount is not None
    )
    return timedelta(milliseconds=total_ms)


def format_duration(value: timedelta) -> str:
    """Format a duration the way Prometheus does, using the largest fitting units."""
    remaining = value // _MILLISECOND
    if remaining < 0:
        raise ValueError(f"negative durations are not supported: {value}")
    if remaining == 0:
        return "0s"
    parts = []
    for unit, unit_ms in _MS_PER_UNIT:
        if unit in _EXACT_UNITS and remaining % unit_ms != 0:
            continue
        amount, remaining = divmod(remaining, unit_ms)
        if amount > 0:
            parts.append(f"{amount}{unit}")
    return "".join(parts)