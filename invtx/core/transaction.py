"""
Transactions - proposed changes to container slots.

A transaction moves content between an outbound slot (content leaves it) and
an inbound slot (content enters it). Either side may be absent. The
``TransactionKind`` discriminant decides how the inbound side is applied:
``SLOT`` writes the slot, ``DROP`` ejects the content from the actor.

Quick Start:
    >>> from invtx.core.content import AIR, ItemStack
    >>> from invtx.core.transaction import Transaction
    >>>
    >>> # Player took the whole stack out of chest slot 0
    >>> tx = Transaction.from_slot_change(chest, 0, ItemStack(1, count=64), AIR)
    >>> tx.outbound.content
    ItemStack(item_id=1, meta=0, count=64)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from invtx.core.content import ItemStack, compute_change
from invtx.core.types import FailureReason, TransactionKind, TransactionStatus

if TYPE_CHECKING:
    from invtx.core.interfaces import Container


@dataclass(frozen=True)
class SlotChange:
    """
    One side of a transaction.

    Attributes:
        container: Container holding the slot (None for a drop's inbound side)
        slot: Slot index (None for a drop's inbound side)
        content: Content expected to leave (outbound) or enter (inbound)
    """

    container: Container | None
    slot: int | None
    content: ItemStack


@dataclass(eq=False)
class Transaction:
    """
    A single proposed change, queued on a ``TransactionGroup``.

    The intent fields (``outbound``, ``inbound``, ``target_content``, ``kind``)
    never change after creation. ``failure_count`` and ``status`` are owned by
    the executor.

    Attributes:
        outbound: Content expected to be taken out of a slot
        inbound: Content expected to be put into a slot
        target_content: Content committed into the slot on success
        kind: Inbound apply action selector
        transaction_id: Unique identifier
        failure_count: Number of failed validation attempts
        status: Current lifecycle status
        last_failure: Reason for the most recent failed attempt
        created_at: When the transaction was created
        completed_at: When the transaction reached a terminal status
    """

    outbound: SlotChange | None
    inbound: SlotChange | None
    target_content: ItemStack
    kind: TransactionKind = TransactionKind.SLOT

    transaction_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    failure_count: int = 0
    status: TransactionStatus = TransactionStatus.PENDING
    last_failure: FailureReason | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @classmethod
    def from_slot_change(
        cls,
        container: Container,
        slot: int,
        source: ItemStack,
        target: ItemStack,
        kind: TransactionKind = TransactionKind.SLOT,
    ) -> Transaction:
        """
        Build a transaction from a "slot went from ``source`` to ``target``" report.

        Both sides refer to the same slot; which sides are present follows
        ``compute_change``.
        """
        out_content, in_content = compute_change(source, target)
        return cls(
            outbound=SlotChange(container, slot, out_content) if out_content is not None else None,
            inbound=SlotChange(container, slot, in_content) if in_content is not None else None,
            target_content=target,
            kind=kind,
        )

    @classmethod
    def drop(
        cls,
        content: ItemStack,
        outbound: SlotChange | None = None,
        target_content: ItemStack | None = None,
    ) -> Transaction:
        """
        Build a drop transaction: ``content`` is taken from the transient
        buffer and ejected from the actor.
        """
        return cls(
            outbound=outbound,
            inbound=SlotChange(None, None, content),
            target_content=target_content if target_content is not None else content,
            kind=TransactionKind.DROP,
        )

    @property
    def is_drop(self) -> bool:
        return self.kind is TransactionKind.DROP

    @property
    def is_pending(self) -> bool:
        return self.status is TransactionStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary (containers by name)."""
        return {
            "transaction_id": self.transaction_id,
            "kind": self.kind.value,
            "outbound": _change_to_dict(self.outbound),
            "inbound": _change_to_dict(self.inbound),
            "target_content": self.target_content.to_dict(),
            "failure_count": self.failure_count,
            "status": self.status.value,
            "last_failure": self.last_failure.value if self.last_failure else None,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.transaction_id[:8]}, kind={self.kind.value}, "
            f"status={self.status.value}, failures={self.failure_count})"
        )


def _change_to_dict(change: SlotChange | None) -> dict[str, Any] | None:
    if change is None:
        return None
    return {
        "container": getattr(change.container, "name", None),
        "slot": change.slot,
        "content": change.content.to_dict(),
    }


def slot_transaction(
    container: Container,
    slot: int,
    target_content: ItemStack,
    expected_out: ItemStack | None = None,
    expected_in: ItemStack | None = None,
) -> Transaction:
    """Build a slot transaction whose sides both refer to ``container[slot]``."""
    return Transaction(
        outbound=SlotChange(container, slot, expected_out) if expected_out is not None else None,
        inbound=SlotChange(container, slot, expected_in) if expected_in is not None else None,
        target_content=target_content,
    )


def drop_transaction(content: ItemStack) -> Transaction:
    """Build a drop transaction ejecting ``content`` from the actor."""
    return Transaction.drop(content)
