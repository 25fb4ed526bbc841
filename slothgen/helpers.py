"""Helpers to read SLO manifests: YAML splitting and file discovery."""

from __future__ import annotations

import os
import re
import stat
from typing import Iterator

from slothgen.log import NOOP, Logger

_SPLIT_MARK_RE = re.compile(r"^---", re.MULTILINE)
_COMMENTS_RE = re.compile(r"^#.*$", re.MULTILINE)

_YAML_EXTENSIONS = (".yml", ".yaml")


def split_yaml(data: bytes | str) -> list[str]:
    """Split a multi-document YAML text into its non-empty documents.

    Lines starting with ``#`` are dropped before splitting on ``---``.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    data = _COMMENTS_RE.sub("", data.strip())
    documents = (part.strip() for part in _SPLIT_MARK_RE.split(data))
    return [doc for doc in documents if doc]


def _extension(path: str) -> str:
    name = os.path.basename(path)
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _walk_files(directory: str) -> Iterator[str]:
    with os.scandir(directory) as entries:
        ordered = sorted(entries, key=lambda entry: entry.name)
    for entry in ordered:
        child = os.path.normpath(os.path.join(directory, entry.name))
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_files(child)
        else:
            yield child


def _compile(pattern: str | re.Pattern[str] | None) -> re.Pattern[str] | None:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


def discover_slo_manifests(
    path: str | os.PathLike[str],
    exclude: str | re.Pattern[str] | None = None,
    include: str | re.Pattern[str] | None = None,
    logger: Logger | None = None,
) -> list[str]:
    """Find YAML files under ``path`` in lexical order.

    A path matching ``exclude`` is skipped; when ``include`` is given, only
    matching paths are kept. Exclude takes precedence.
    """
    logger = (logger or NOOP).with_values({"svc": "SLODiscovery"})
    exclude_re = _compile(exclude)
    include_re = _compile(include)

    root = os.fspath(path)
    if stat.S_ISDIR(os.lstat(root).st_mode):
        candidates: Iterator[str] = _walk_files(root)
    else:
        candidates = iter([root])

    found = []
    for candidate in candidates:
        if _extension(candidate).lower() not in _YAML_EXTENSIONS:
            continue
        if exclude_re is not None and exclude_re.search(candidate):
            logger.debug("Excluding path due to exclude filter %s", candidate)
            continue
        if include_re is not None and not include_re.search(candidate):
            logger.debug("Excluding path due to include filter %s", candidate)
            continue
        found.append(candidate)
    return found