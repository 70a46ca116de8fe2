"""Helpers shared by the commands: multi-document YAML splitting and SLO file discovery."""

from __future__ import annotations

import os
import re
import stat
from typing import Optional, Pattern, Union

from slothgen.log import NOOP, Logger

_SPLIT_MARK_RE = re.compile(r"^---", re.MULTILINE)
_COMMENTS_RE = re.compile(r"^#.*$", re.MULTILINE)

_YAML_EXTENSIONS = (".yml", ".yaml")

RegexLike = Optional[Union[str, Pattern[str]]]


def split_yaml(data: Union[bytes, str]) -> list[str]:
    """Split a multi-document YAML text into its non-empty documents, without comment lines."""
    text = data.decode() if isinstance(data, bytes) else data
    text = _COMMENTS_RE.sub("", text.strip())
    parts = (part.strip() for part in _SPLIT_MARK_RE.split(text))
    return [part for part in parts if part]


def _compile(regex: RegexLike) -> Optional[Pattern[str]]:
    if regex is None or regex == "":
        return None
    if isinstance(regex, str):
        return re.compile(regex)
    return regex


def _extension(path: str) -> str:
    name = os.path.basename(path)
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def discover_slo_manifests(
    path: Union[str, os.PathLike],
    exclude: RegexLike = None,
    include: RegexLike = None,
    logger: Optional[Logger] = None,
) -> list[str]:
    """Return the YAML files under ``path`` in lexical walk order, filtered by the regexes.

    A path matching ``exclude`` is dropped; otherwise, when ``include`` is given,
    only paths matching it are kept.
    """
    logger = (logger or NOOP).with_values({"svc": "SLODiscovery"})
    exclude_re = _compile(exclude)
    include_re = _compile(include)
    found: list[str] = []

    def visit(current: str) -> None:
        mode = os.lstat(current).st_mode
        if stat.S_ISDIR(mode):
            for name in sorted(os.listdir(current)):
                visit(os.path.join(current, name))
            return

        if _extension(current).lower() not in _YAML_EXTENSIONS:
            return

        if exclude_re is not None and exclude_re.search(current):
            logger.debug("Excluding path due to exclude filter %s", current)
            return
        if include_re is not None and not include_re.search(current):
            logger.debug("Excluding path due to include filter %s", current)
            return

        found.append(current)

    try:
        visit(os.fspath(path))
    except OSError as err:
        raise OSError(f"could not find files recursively: {err}") from err

    return found