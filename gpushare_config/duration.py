"""Durations stored as nanoseconds, with Go-style text parsing and formatting."""

import math
import re
from dataclasses import dataclass

from .consts import ConfigError

_NANOSECOND = 1
_MICROSECOND = 1_000
_MILLISECOND = 1_000_000
_SECOND = 1_000_000_000
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "\u00b5s": _MICROSECOND,
    "\u03bcs": _MICROSECOND,
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

_LIMIT = 1 << 63
_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")


def parse_duration(text):
    """Parse a duration such as "1h30m" or "1.5s" into nanoseconds."""
    rest = text
    negative = False
    if rest[:1] in ("-", "+"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return 0
    if not rest:
        raise ConfigError(f'invalid duration "{text}"')

    total = 0
    pos = 0
    while pos < len(rest):
        match = _COMPONENT.match(rest, pos)
        whole, frac, unit = match.groups()
        if not whole and not frac:
            raise ConfigError(f'invalid duration "{text}"')
        if not unit:
            raise ConfigError(f'missing unit in duration "{text}"')
        scale = _UNITS.get(unit)
        if scale is None:
            raise ConfigError(f'unknown unit "{unit}" in duration "{text}"')
        value = int(whole or "0") * scale
        if frac:
            value += int(frac) * scale // 10 ** len(frac)
        total += value
        if total > _LIMIT:
            raise ConfigError(f'invalid duration "{text}"')
        pos = match.end()

    if negative:
        return -total
    if total > _LIMIT - 1:
        raise ConfigError(f'invalid duration "{text}"')
    return total


def _with_fraction(value, digits):
    whole, remainder = divmod(value, 10**digits)
    fraction = str(remainder).rjust(digits, "0").rstrip("0")
    return f"{whole}.{fraction}" if fraction else str(whole)


def format_duration(nanoseconds):
    """Format nanoseconds the way Go prints a time.Duration."""
    if nanoseconds == 0:
        return "0s"
    magnitude = abs(nanoseconds)
    if magnitude < _MICROSECOND:
        body = f"{magnitude}ns"
    elif magnitude < _MILLISECOND:
        body = _with_fraction(magnitude, 3) + "\u00b5s"
    elif magnitude < _SECOND:
        body = _with_fraction(magnitude, 6) + "ms"
    else:
        seconds, remainder = divmod(magnitude, _SECOND)
        body = _with_fraction((seconds % 60) * _SECOND + remainder, 9) + "s"
        minutes = seconds // 60
        if minutes:
            body = f"{minutes % 60}m{body}"
            hours = minutes // 60
            if hours:
                body = f"{hours}h{body}"
    return f"-{body}" if nanoseconds < 0 else body


@dataclass(frozen=True, order=True)
class Duration:
    """A span of time in nanoseconds."""

    nanoseconds: int = 0

    def __str__(self):
        return format_duration(self.nanoseconds)

    @classmethod
    def from_json(cls, value):
        """Build from a JSON number of nanoseconds or a duration string."""
        if isinstance(value, bool):
            raise ConfigError("invalid duration")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ConfigError("invalid duration")
            return cls(int(value))
        if isinstance(value, str):
            return cls(parse_duration(value))
        raise ConfigError("invalid duration")

    def to_json(self):
        """Return the duration as its text form."""
        return str(self)