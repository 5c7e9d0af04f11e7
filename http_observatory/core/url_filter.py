"""URL allow/deny evaluation."""

from __future__ import annotations

from typing import Pattern, Sequence

from ..config import HeaderSetting, HttpPluginConfig


def _matches_any(url: str, patterns: Sequence[Pattern[str]]) -> bool:
    return any(p.search(url) for p in patterns)


def is_allowed(url: str, include: Sequence[Pattern[str]], exclude: Sequence[Pattern[str]]) -> bool:
    """True when ``url`` matches an include pattern and no exclude pattern.

    An empty include list places no restriction on the URL.
    """
    if include and not _matches_any(url, include):
        return False
    return not _matches_any(url, exclude)


def is_url_allowed(url: str, config: HttpPluginConfig) -> bool:
    return is_allowed(url, config.urls_to_include, config.urls_to_exclude)


def is_trace_header_enabled(url: str, setting: HeaderSetting) -> bool:
    """Whether the trace header should be written for ``url``."""
    if isinstance(setting, bool):
        return setting
    return _matches_any(url, setting)
