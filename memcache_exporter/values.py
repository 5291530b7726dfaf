"""Reading numeric values out of memcached stats maps."""

from __future__ import annotations

import logging
import math
from typing import Mapping

logger = logging.getLogger(__name__)

_INFINITY_WORDS = frozenset({"inf", "infinity"})


class KeyNotFound(LookupError):
    """The requested key is not present in the stats map."""

    def __init__(self, key: str = "") -> None:
        self.key = key
        super().__init__("key not found")


class ValueParseError(ValueError):
    """A stats value could not be parsed."""


def _parse_float(text: str) -> float:
    """Parse a decimal or hexadecimal float, strictly: no spaces, no underscores."""
    if not text or text != text.strip() or "_" in text:
        raise ValueParseError(f"invalid syntax: {text!r}")
    unsigned = text[1:] if text[0] in "+-" else text
    if unsigned.lower().startswith("0x"):
        try:
            value = float.fromhex(text)
        except (ValueError, OverflowError):
            raise ValueParseError(f"invalid syntax: {text!r}") from None
    else:
        try:
            value = float(text)
        except ValueError:
            raise ValueParseError(f"invalid syntax: {text!r}") from None
    if math.isinf(value) and unsigned.lower() not in _INFINITY_WORDS:
        raise ValueParseError(f"value out of range: {text!r}")
    return value


def _lookup(stats: Mapping[str, str], key: str) -> str:
    try:
        return stats[key]
    except KeyError:
        logger.debug("Key not found: key=%s", key)
        raise KeyNotFound(key) from None


def parse(stats: Mapping[str, str], key: str) -> float:
    """Return the value of key as a float."""
    value = _lookup(stats, key)
    try:
        return _parse_float(value)
    except ValueParseError as exc:
        logger.error("Failed to parse: key=%s value=%s err=%s", key, value, exc)
        raise


def parse_bool(stats: Mapping[str, str], key: str) -> float:
    """Return 1.0 for "yes" and 0.0 for "no"; anything else is an error."""
    value = _lookup(stats, key)
    if value == "yes":
        return 1.0
    if value == "no":
        return 0.0
    logger.error("Failed to parse: key=%s value=%s", key, value)
    raise ValueParseError("failed parse a bool value")


def parse_timeval(stats: Mapping[str, str], key: str) -> float:
    """Return a "seconds.microseconds" value as seconds."""
    value = _lookup(stats, key)
    parts = value.split(".")
    if len(parts) != 2:
        logger.error("Failed to parse: key=%s value=%s", key, value)
        raise ValueParseError("failed parse a timeval value")
    try:
        seconds = _parse_float(parts[0])
        microseconds = _parse_float(parts[1])
    except ValueParseError as exc:
        logger.error("Failed to parse: key=%s value=%s err=%s", key, value, exc)
        raise ValueParseError("failed parse a timeval value") from None
    return seconds + microseconds / (1000.0 * 1000.0)


def sum_values(stats: Mapping[str, str], *keys: str) -> float:
    """Return the sum of the values of all keys; every key must be present."""
    total = 0.0
    for key in keys:
        if key not in stats:
            raise KeyNotFound(key)
        total += _parse_float(stats[key])
    return total