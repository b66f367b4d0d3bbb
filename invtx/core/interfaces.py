"""
Collaborator interfaces consumed by the transaction executor.

The executor never owns container storage, the actor model or the
notification transport. Implementations plug in through these ABCs; see
``invtx.backends.memory`` for the in-memory versions used by tests and the
scenario simulator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from invtx.core.content import ItemStack
    from invtx.core.transaction import Transaction


class Container(ABC):
    """
    A slot-indexed mutable store (an "inventory").

    The executor only reads and writes through this interface, so the
    containment rules (how much of a stack counts as a match) belong to the
    implementation.
    """

    @abstractmethod
    def get_content(self, slot: int) -> ItemStack:
        """Return the content of a slot (air when empty)."""

    @abstractmethod
    def slot_contains(self, slot: int, content: ItemStack) -> bool:
        """True if the slot currently holds ``content``."""

    @abstractmethod
    def set_content(self, slot: int, content: ItemStack, notify: bool = True) -> None:
        """
        Overwrite a slot.

        Args:
            slot: Slot index
            content: New content
            notify: Whether observers of the container are told about the write
        """

    @abstractmethod
    def contains(self, content: ItemStack) -> bool:
        """True if the container holds at least ``content`` anywhere."""

    @abstractmethod
    def remove_content(self, content: ItemStack) -> ItemStack | None:
        """
        Remove ``content`` from wherever it is stored.

        Returns:
            The part that could not be removed, or None
        """

    @abstractmethod
    def add_content(self, content: ItemStack) -> ItemStack | None:
        """
        Store ``content`` in whatever slots can take it.

        Returns:
            The part that did not fit, or None
        """


class Actor(ABC):
    """The party that owns a transaction group (typically a connected player)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name, used in logs."""

    @abstractmethod
    def is_unrestricted_edit_mode(self) -> bool:
        """True when the actor may edit containers without validation."""

    @abstractmethod
    def get_transient_buffer(self) -> Container:
        """The escrow container holding content taken out of slots."""

    @abstractmethod
    def eject(self, content: ItemStack) -> None:
        """Throw ``content`` out of the actor (the drop action)."""


class NotificationSink(ABC):
    """
    Receives the outcome of each transaction.

    Called inline for successes and after the drain loop for permanent
    failures, exactly once per transaction.
    """

    @abstractmethod
    def notify(self, transaction: Transaction) -> None:
        """Inform observers of ``transaction``'s final status."""
