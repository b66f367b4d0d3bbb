"""
Slot content values.

An ``ItemStack`` is an immutable (item type, count) value stored in container
slots. ``AIR`` is the empty slot.

Usage:
    >>> from invtx.core.content import ItemStack, compute_change
    >>>
    >>> before = ItemStack(item_id=1, count=64)
    >>> after = ItemStack(item_id=1, count=60)
    >>> compute_change(before, after)
    (ItemStack(item_id=1, meta=0, count=4), None)
"""

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class ItemStack:
    """
    A stack of identical items.

    Attributes:
        item_id: Item type identifier (0 is air)
        meta: Item variant / damage value
        count: Number of items in the stack
    """

    item_id: int
    meta: int = 0
    count: int = 1

    def __post_init__(self):
        if self.count < 0:
            msg = f"ItemStack count cannot be negative: {self.count}"
            raise ValueError(msg)

    @property
    def is_air(self) -> bool:
        return self.item_id == 0 or self.count == 0

    def same_type(self, other: "ItemStack") -> bool:
        """True if both stacks hold the same item type, ignoring count."""
        return self.item_id == other.item_id and self.meta == other.meta

    def with_count(self, count: int) -> "ItemStack":
        return replace(self, count=count)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.item_id, "meta": self.meta, "count": self.count}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ItemStack":
        """Create a stack from ``{"id": .., "meta": .., "count": ..}``; None is air."""
        if not data:
            return AIR
        item_id = int(data.get("id", data.get("item_id", 0)))
        if item_id == 0:
            return AIR
        return cls(
            item_id=item_id,
            meta=int(data.get("meta", 0)),
            count=int(data.get("count", 1)),
        )

    def __str__(self) -> str:
        if self.is_air:
            return "air"
        return f"{self.item_id}:{self.meta} x{self.count}"


AIR = ItemStack(item_id=0, count=0)


def compute_change(
    source: ItemStack, target: ItemStack
) -> tuple[ItemStack | None, ItemStack | None]:
    """
    Derive the outbound and inbound content of a slot edit.

    Args:
        source: What the slot held before the edit
        target: What the slot holds after the edit

    Returns:
        ``(out, in)`` where ``out`` is the content that left the slot and
        ``in`` the content that entered it. Either may be None.
    """
    if source.is_air and target.is_air:
        return None, None

    if source == target:
        return None, None

    if not source.is_air and not target.is_air and source.same_type(target):
        if source.count < target.count:
            return None, target.with_count(target.count - source.count)
        return source.with_count(source.count - target.count), None

    if source.is_air:
        return None, target

    if target.is_air:
        return source, None

    return source, target
