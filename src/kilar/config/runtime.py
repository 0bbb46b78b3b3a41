from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import os
from pathlib import Path
from typing import Callable, Optional, Sequence, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}

# Earlier files take precedence; the process environment beats both
_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".kilar.env")

_DEFAULT_VALUES: dict[str, str] | None = None


def _load_default_values() -> dict[str, str]:
    from .runtime_helpers import DotenvLoader

    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is None:
        defaults: dict[str, str] = {}
        for path in _DOTENV_CANDIDATES:
            for key, value in DotenvLoader.load_from_file(path).items():
                defaults.setdefault(key, value)
        _DEFAULT_VALUES = defaults
    return _DEFAULT_VALUES


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> str | None:
    """Fetch a setting as a string, falling back to dotenv defaults then ``or_value``."""

    for raw in (os.getenv(name), _load_default_values().get(name)):
        if raw is None:
            continue
        value = raw.strip() if strip else raw
        if value or allow_blank:
            return value

    if required:
        raise ConfigurationError(f"Required environment variable {name!r} is not set")
    return or_value


def _typed(name: str, or_value: Optional[T], required: bool, kind: str, cast: Callable[[str], T]) -> Optional[T]:
    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name!r} must be {kind} (got {raw!r})") from exc


def _to_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(raw)


def env_int(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    return _typed(name, or_value, required, "an integer", int)


def env_float(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    return _typed(name, or_value, required, "a float", float)


def env_bool(name: str, or_value: bool | None = None, *, required: bool = False) -> bool | None:
    """Accepts 1/0, true/false, yes/no, on/off (case-insensitive)."""
    return _typed(name, or_value, required, "a boolean", _to_bool)


def env_list(
    name: str,
    *,
    or_value: Sequence[str] | None = None,
    separator: str = ",",
    strip_items: bool = True,
    unique: bool = True,
    required: bool = False,
) -> tuple[str, ...] | None:
    """Fetch a delimited list, e.g. ``KILAR_BACKENDS=ss,lsof``."""
    from .runtime_helpers import ListNormalizer

    raw = env_str(name)
    if raw is None:
        if required and not or_value:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return tuple(or_value) if or_value is not None else None

    items = tuple(ListNormalizer.split_and_normalize(raw, separator, strip_items))
    if not items and required:
        raise ConfigurationError(f"Environment variable {name!r} must contain at least one value")
    return ListNormalizer.deduplicate_preserving_order(items) if unique else items


def env_seconds(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Fetch a non-negative duration in (possibly fractional) seconds."""

    value = env_float(name, or_value=or_value, required=required)
    if value is not None and value < 0:
        raise ConfigurationError(f"Environment variable {name!r} must be non-negative (got {value})")
    return value


__all__ = [
    "ConfigurationError",
    "env_bool",
    "env_float",
    "env_int",
    "env_list",
    "env_seconds",
    "env_str",
]
