"""
Tests for ItemStack values and slot change derivation.
"""

import pytest

from invtx.core.content import AIR, ItemStack, compute_change

STONE = ItemStack(1, count=64)


class TestItemStack:
    """Tests for ItemStack."""

    def test_air(self):
        assert AIR.is_air
        assert ItemStack(0, count=5).is_air
        assert ItemStack(1, count=0).is_air
        assert not STONE.is_air

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            ItemStack(1, count=-1)

    def test_same_type_ignores_count(self):
        assert STONE.same_type(ItemStack(1, count=3))
        assert not STONE.same_type(ItemStack(1, meta=2, count=64))
        assert not STONE.same_type(ItemStack(2, count=64))

    def test_with_count_returns_new_stack(self):
        smaller = STONE.with_count(10)
        assert smaller.count == 10
        assert STONE.count == 64

    def test_dict_conversion(self):
        assert STONE.to_dict() == {"id": 1, "meta": 0, "count": 64}
        assert ItemStack.from_dict({"id": 1, "count": 64}) == STONE
        assert ItemStack.from_dict({"item_id": 5, "meta": 1}) == ItemStack(5, meta=1, count=1)

    def test_from_dict_empty_is_air(self):
        assert ItemStack.from_dict(None) is AIR
        assert ItemStack.from_dict({}) is AIR
        assert ItemStack.from_dict({"id": 0, "count": 5}) is AIR

    def test_str(self):
        assert str(STONE) == "1:0 x64"
        assert str(AIR) == "air"


class TestComputeChange:
    """Tests for deriving outbound/inbound content from a slot edit."""

    @pytest.mark.parametrize(
        "source,target,expected",
        [
            (AIR, AIR, (None, None)),
            (STONE, STONE, (None, None)),
            (STONE, AIR, (STONE, None)),
            (AIR, STONE, (None, STONE)),
            (STONE, STONE.with_count(60), (STONE.with_count(4), None)),
            (STONE.with_count(60), STONE, (None, STONE.with_count(4))),
            (STONE, ItemStack(3, count=2), (STONE, ItemStack(3, count=2))),
        ],
        ids=["air", "unchanged", "take", "place", "take-some", "add-some", "swap"],
    )
    def test_compute_change(self, source, target, expected):
        assert compute_change(source, target) == expected
