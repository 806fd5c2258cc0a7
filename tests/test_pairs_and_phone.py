from __future__ import annotations

import pytest

from swipematch.utils.http import etag_matches, weak_etag
from swipematch.utils.pairs import sorted_pair, users_key
from swipematch.utils.phone import mask_phone, phone_for_viewer


def test_users_key_is_order_independent() -> None:
    assert users_key("bob", "alice") == "alice_bob"
    assert users_key("alice", "bob") == users_key("bob", "alice")
    assert sorted_pair("u2", "u10") == ("u10", "u2")


@pytest.mark.parametrize("a,b", [("same", "same"), ("", "bob"), ("alice", "")])
def test_pair_rejects_degenerate_input(a: str, b: str) -> None:
    with pytest.raises(ValueError):
        users_key(a, b)


def test_mask_keeps_prefix_and_fixed_suffix() -> None:
    assert mask_phone("+2348012345678") == "+234XXXXXX"
    # Mask length does not depend on the number
    assert len(mask_phone("+1555")) == len(mask_phone("+15550001234567"))
    assert mask_phone(None) is None
    assert mask_phone("   ") is None


def test_phone_for_viewer_reveals_only_when_allowed() -> None:
    assert phone_for_viewer("+15550001234", revealed=True) == "+15550001234"
    assert phone_for_viewer("+15550001234", revealed=False) == "+155XXXXXX"
    assert phone_for_viewer("+15550001234", revealed=False, visible=2, mask="**") == "+1**"


def test_weak_etag_ignores_key_order() -> None:
    first = weak_etag({"a": 1, "b": [1, 2]})
    second = weak_etag({"b": [1, 2], "a": 1})
    assert first == second
    assert first.startswith('W/"')
    assert etag_matches(f'"other", {first}', first)
    assert etag_matches("*", first)
    assert not etag_matches(None, first)
