"""Layered merging of configuration dicts.

Each source (system file, user file, project file, environment, command
line) yields a plain dict. Later sources win, nested sections merge key by
key, lists replace wholesale, and ``None`` never clobbers a value that an
earlier layer set.
"""

from __future__ import annotations

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict with ``override`` layered on top of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge config layers in order, lowest priority first."""
    result: dict[str, Any] = {}
    for layer in layers:
        if layer:
            result = deep_merge(result, layer)
    return result


def expand_dotted(flat: dict[str, Any]) -> dict[str, Any]:
    """Turn ``{"watch.sleep_time": 3}`` into ``{"watch": {"sleep_time": 3}}``.

    Used for command-line overrides, which arrive as flat dotted keys.
    ``None`` values are dropped so unset flags leave lower layers alone.
    """
    nested: dict[str, Any] = {}
    for dotted, value in flat.items():
        if value is None:
            continue
        *sections, leaf = dotted.split(".")
        target = nested
        for section in sections:
            target = target.setdefault(section, {})
        target[leaf] = value
    return nested
