"""Canonical identity for an unordered pair of users."""

from __future__ import annotations

from typing import Tuple

USERS_KEY_SEPARATOR = "_"


def sorted_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    """Return both identities in lexicographic order.

    Raises ``ValueError`` unless given two distinct, non-empty identities;
    callers validate input before reaching this point.
    """

    first, second = str(user_a or ""), str(user_b or "")
    if not first or not second or first == second:
        raise ValueError("a pair requires exactly two distinct user ids")
    return (first, second) if first < second else (second, first)


def users_key(user_a: str, user_b: str) -> str:
    """Order-independent key used as the uniqueness anchor for matches."""

    return USERS_KEY_SEPARATOR.join(sorted_pair(user_a, user_b))


__all__ = ["USERS_KEY_SEPARATOR", "sorted_pair", "users_key"]
