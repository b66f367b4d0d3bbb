"""
In-memory containers and actors - for testing, development and simulation.

Usage:
    >>> chest = InMemoryContainer(size=27, name="chest")
    >>> chest.set_content(0, ItemStack(item_id=1, count=64))
    >>>
    >>> player = InMemoryActor("steve")
    >>> group = TransactionGroup(player)
"""

from __future__ import annotations

from collections.abc import Callable

from invtx.core.content import AIR, ItemStack
from invtx.core.interfaces import Actor, Container

DEFAULT_MAX_STACK_SIZE = 64
DEFAULT_BUFFER_SIZE = 9


class InMemoryContainer(Container):
    """
    Fixed-size list of slots.

    Containment rules:
        - ``slot_contains``: the slot holds the same item type with at least
          the expected count
        - ``contains``: same-type stacks across all slots add up to at least
          the expected count

    Every ``set_content`` call is appended to ``writes`` as ``(slot, content)``;
    listeners registered with ``on_change`` run only for ``notify=True`` writes.
    """

    def __init__(
        self,
        size: int,
        name: str = "container",
        max_stack_size: int = DEFAULT_MAX_STACK_SIZE,
    ):
        if size < 1:
            msg = f"Container size must be positive, got {size}"
            raise ValueError(msg)
        if max_stack_size < 1:
            msg = f"Max stack size must be positive, got {max_stack_size}"
            raise ValueError(msg)

        self.name = name
        self.size = size
        self.max_stack_size = max_stack_size
        self._slots: list[ItemStack] = [AIR] * size
        self.writes: list[tuple[int, ItemStack]] = []
        self._listeners: list[Callable[[InMemoryContainer, int, ItemStack], None]] = []

    def on_change(self, listener: Callable[[InMemoryContainer, int, ItemStack], None]) -> None:
        self._listeners.append(listener)

    def _check_slot(self, slot: int) -> None:
        if not 0 <= slot < self.size:
            msg = f"Slot {slot} out of range for {self.name} (size {self.size})"
            raise IndexError(msg)

    def get_content(self, slot: int) -> ItemStack:
        self._check_slot(slot)
        return self._slots[slot]

    def slot_contains(self, slot: int, content: ItemStack) -> bool:
        current = self.get_content(slot)
        if content.is_air:
            return current.is_air
        return current.same_type(content) and current.count >= content.count

    def set_content(self, slot: int, content: ItemStack, notify: bool = True) -> None:
        self._check_slot(slot)
        content = AIR if content.is_air else content
        self._slots[slot] = content
        self.writes.append((slot, content))

        if notify:
            for listener in self._listeners:
                listener(self, slot, content)

    def contains(self, content: ItemStack) -> bool:
        if content.is_air:
            return True
        return self.count_of(content) >= content.count

    def count_of(self, content: ItemStack) -> int:
        """Total count of stacks with the same item type as ``content``."""
        return sum(
            stack.count
            for stack in self._slots
            if not stack.is_air and stack.same_type(content)
        )

    def add_content(self, content: ItemStack) -> ItemStack | None:
        if content.is_air:
            return None

        remaining = content.count
        limit = self.max_stack_size

        # Top up existing stacks first, then fill empty slots
        for slot, stack in enumerate(self._slots):
            if remaining == 0:
                break
            if not stack.is_air and stack.same_type(content) and stack.count < limit:
                moved = min(limit - stack.count, remaining)
                self._slots[slot] = stack.with_count(stack.count + moved)
                remaining -= moved

        for slot, stack in enumerate(self._slots):
            if remaining == 0:
                break
            if stack.is_air:
                moved = min(limit, remaining)
                self._slots[slot] = content.with_count(moved)
                remaining -= moved

        return content.with_count(remaining) if remaining else None

    def remove_content(self, content: ItemStack) -> ItemStack | None:
        if content.is_air:
            return None

        remaining = content.count
        for slot, stack in enumerate(self._slots):
            if remaining == 0:
                break
            if stack.is_air or not stack.same_type(content):
                continue
            taken = min(stack.count, remaining)
            left = stack.count - taken
            self._slots[slot] = stack.with_count(left) if left else AIR
            remaining -= taken

        return content.with_count(remaining) if remaining else None

    def clear(self) -> None:
        self._slots = [AIR] * self.size

    def snapshot(self) -> dict[int, ItemStack]:
        """Non-empty slots by index."""
        return {slot: stack for slot, stack in enumerate(self._slots) if not stack.is_air}

    def __repr__(self) -> str:
        return f"InMemoryContainer(name={self.name!r}, size={self.size})"


class InMemoryActor(Actor):
    """
    Actor with its own transient buffer container.

    Ejected content is collected in ``ejected``.
    """

    def __init__(
        self,
        name: str = "actor",
        buffer: InMemoryContainer | None = None,
        unrestricted: bool = False,
    ):
        self._name = name
        self._buffer = buffer or InMemoryContainer(DEFAULT_BUFFER_SIZE, name=f"{name}:buffer")
        self.unrestricted = unrestricted
        self.ejected: list[ItemStack] = []

    @property
    def name(self) -> str:
        return self._name

    def is_unrestricted_edit_mode(self) -> bool:
        return self.unrestricted

    def get_transient_buffer(self) -> InMemoryContainer:
        return self._buffer

    def eject(self, content: ItemStack) -> None:
        if not content.is_air:
            self.ejected.append(content)

    def __repr__(self) -> str:
        return f"InMemoryActor(name={self._name!r}, unrestricted={self.unrestricted})"
