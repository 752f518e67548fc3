"""Tag grammar for items.txt.

An item tag is ``<group prefix><instance digits><field>``, e.g. ``pikex36Transform``:
the *identity* ``pikex36`` is shared by every field record of one item instance
(``pikex36Transform``, ``pikex36Condition``, ...).

Spraycans are the exception: ``spraycan0145Transform`` carries a 2-digit colour
index (``01``) followed by the instance index, and only the colour index belongs
to the identity.
"""

from __future__ import annotations

SPRAYCAN_PREFIX = "spraycan"
SPRAYCAN_INDEX_DIGITS = 2


def _is_digit(c: str) -> bool:
    # ASCII only: str.isdigit() also accepts superscripts and other scripts.
    return "0" <= c <= "9"


def digit_span(tag: str) -> tuple[int, int] | None:
    """Return (start, end) of the first run of decimal digits, or None."""
    start = None
    for i, c in enumerate(tag):
        if _is_digit(c):
            if start is None:
                start = i
        elif start is not None:
            return start, i
    if start is None:
        return None
    return start, len(tag)


def identity_end(tag: str) -> int:
    span = digit_span(tag)
    if span is None:
        return len(tag)
    start, end = span
    if tag.startswith(SPRAYCAN_PREFIX):
        end = min(end, start + SPRAYCAN_INDEX_DIGITS)
    return end


def item_identity(tag: str) -> str:
    """Trim the field name off a tag: ``pikex36Transform`` -> ``pikex36``."""
    return tag[: identity_end(tag)]


def set_numeric_suffix(tag: str, n: int) -> str:
    """Replace the first digit run: ``sausagesx11Transform`` -> ``sausagesx7Transform``.

    Tags without digits are returned unchanged.
    """
    span = digit_span(tag)
    if span is None:
        return tag
    start, end = span
    return f"{tag[:start]}{int(n)}{tag[end:]}"


def rebase_identity(tag: str, old_identity: str, new_identity: str) -> str:
    """Swap the leading identity span of ``tag`` for ``new_identity``.

    Only the identity span is touched; text after it is kept verbatim even if
    it happens to contain ``old_identity`` again.
    """
    if not tag.startswith(old_identity) or identity_end(tag) != len(old_identity):
        return tag
    return new_identity + tag[len(old_identity) :]
