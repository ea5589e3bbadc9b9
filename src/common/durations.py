"""
Go-style duration strings ("1m", "90s", "1m30s", "250ms") to and from seconds.
"""

import re

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_BARE_NUMBER_RE = re.compile(r"^\d+(?:\.\d*)?$")


def parse_duration(value: str) -> float:
    """
    Parse a duration string into seconds.

    Accepts the same unit suffixes Go's time.ParseDuration does and an
    unsuffixed number, which is read as seconds.

    Raises:
        ValueError: If the string is empty, negative, or malformed
    """
    text = (value or "").strip()
    if not text:
        raise ValueError("duration cannot be empty")

    if text.startswith("-"):
        raise ValueError(f"duration must not be negative: {value!r}")
    if text.startswith("+"):
        text = text[1:]

    if _BARE_NUMBER_RE.match(text):
        return float(text)

    total = 0.0
    position = 0
    for match in _COMPONENT_RE.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration: {value!r}")

    return total


def format_duration(seconds: float) -> str:
    """Render seconds the way Go prints a time.Duration, e.g. 1m0s or 1.5s."""
    if seconds == 0:
        return "0s"
    if seconds < 1:
        return f"{seconds * 1000:g}ms"

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{round(secs, 9):g}s")
    return "".join(parts)
