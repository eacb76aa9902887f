"""Secret masking for log output."""

from __future__ import annotations


def mask_secret(value: str | None) -> str:
    """Return *value* with everything except a short head and tail hidden.

    API keys keep their vendor prefix (``sk-``) and the last four characters,
    which is enough to tell two keys apart in a log without exposing either.
    Values of 8 characters or less are fully starred.
    """
    candidate = str(value or "").strip()
    length = len(candidate)
    if length == 0:
        return ""
    if length <= 8:
        return "*" * length
    head = 3
    tail = 4
    return f"{candidate[:head]}{'*' * (length - head - tail)}{candidate[-tail:]}"
