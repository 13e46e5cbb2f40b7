"""Ordered candidate chains with early exit.

Favicon sources, meta-tag images, inline images, thumbnails and the three
preview-image strategies are all expressed as an ordered iterable of
candidates plus a single ``attempt`` callable returning a value or ``None``.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, TypeVar

C = TypeVar("C")
R = TypeVar("R")


def first_success(
    candidates: Iterable[C], attempt: Callable[[C], Optional[R]]
) -> Optional[R]:
    """Return the first non-``None`` ``attempt(candidate)``.

    Candidates are tried strictly in order and lazily, so later ones are never
    evaluated once an earlier one succeeds.  Exhaustion returns ``None``.
    """
    for candidate in candidates:
        result = attempt(candidate)
        if result is not None:
            return result
    return None
