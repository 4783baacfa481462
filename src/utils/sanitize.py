from __future__ import annotations

import re
from typing import Any, Callable, List

_TAG_RE = re.compile(r"<[^>]*(?:>|$)", re.DOTALL)
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_NUMBER_RE = re.compile(r"[^0-9.\-]")


def sanitize_string(value: Any) -> str:
    """Sanitize a free-text request value.

    - Strip HTML tags (an unclosed ``<`` swallows the rest of the value)
    - Drop NUL and other control characters
    - Encode double and single quotes as numeric entities
    - Trim surrounding whitespace

    Returns an empty string when nothing usable is left.
    """

    if value is None:
        return ""

    text = str(value)
    text = _TAG_RE.sub("", text)
    text = _CONTROL_RE.sub("", text)
    text = text.replace('"', "&#34;").replace("'", "&#39;")

    return text.strip()


def sanitize_number(value: Any) -> str:
    """Reduce a request value to a numeric string.

    Keeps digits, a leading minus and the first decimal point. Anything that
    does not leave at least one digit collapses to an empty string.
    """

    if value is None:
        return ""

    raw = _NUMBER_RE.sub("", str(value).strip())
    if not raw:
        return ""

    negative = raw.startswith("-")
    raw = raw.replace("-", "")

    head, dot, tail = raw.partition(".")
    tail = tail.replace(".", "")
    number = f"{head}{dot}{tail}" if tail else head

    if not any(ch.isdigit() for ch in number):
        return ""

    return f"-{number}" if negative else number


def to_int(value: Any) -> int | None:
    """Parse a sanitized numeric string into an int, or None.

    Only the integer part is kept, exactly as written (no float rounding).
    """

    number = sanitize_number(value)
    if not number:
        return None

    negative = number.startswith("-")
    digits = number.lstrip("-").partition(".")[0] or "0"
    try:
        result = int(digits)
    except ValueError:
        # Beyond the interpreter's int string conversion limit.
        return None
    return -result if negative else result


def split_list(value: Any, sanitizer: Callable[[Any], str] = sanitize_string) -> List[str]:
    """Split a comma-separated value and sanitize each item.

    Items that sanitize to empty are dropped; an empty list means "no filter".
    """

    if not value:
        return []

    parts = [sanitizer(p) for p in str(value).split(",")]
    return [p for p in parts if p]
