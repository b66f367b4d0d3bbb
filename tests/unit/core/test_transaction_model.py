"""
Tests for the Transaction model and its constructors.
"""

from invtx.backends import InMemoryContainer
from invtx.core.content import AIR, ItemStack
from invtx.core.transaction import SlotChange, Transaction, drop_transaction, slot_transaction
from invtx.core.types import FailureReason, TransactionKind, TransactionStatus

STONE = ItemStack(1, count=64)
DIRT = ItemStack(3, count=10)


class TestTransaction:
    """Tests for Transaction defaults and helpers."""

    def test_defaults(self):
        tx = Transaction(outbound=None, inbound=None, target_content=AIR)

        assert tx.status is TransactionStatus.PENDING
        assert tx.kind is TransactionKind.SLOT
        assert tx.failure_count == 0
        assert tx.last_failure is None
        assert tx.completed_at is None
        assert tx.is_pending
        assert not tx.is_terminal
        assert not tx.is_drop

    def test_ids_are_unique(self):
        ids = {Transaction(None, None, AIR).transaction_id for _ in range(50)}
        assert len(ids) == 50

    def test_identity_equality(self):
        """Two transactions with the same intent are still different transactions."""
        a = Transaction(None, None, STONE)
        b = Transaction(None, None, STONE)
        assert a != b
        assert a == a

    def test_repr_is_short(self):
        tx = Transaction(None, None, AIR)
        assert repr(tx).startswith(f"Transaction(id={tx.transaction_id[:8]}")


class TestFromSlotChange:
    """Tests for building transactions from before/after slot contents."""

    def test_take_whole_stack(self):
        chest = InMemoryContainer(9)
        tx = Transaction.from_slot_change(chest, 3, STONE, AIR)

        assert tx.outbound == SlotChange(chest, 3, STONE)
        assert tx.inbound is None
        assert tx.target_content == AIR

    def test_place_into_empty_slot(self):
        chest = InMemoryContainer(9)
        tx = Transaction.from_slot_change(chest, 0, AIR, DIRT)

        assert tx.outbound is None
        assert tx.inbound == SlotChange(chest, 0, DIRT)

    def test_swap(self):
        chest = InMemoryContainer(9)
        tx = Transaction.from_slot_change(chest, 0, STONE, DIRT)

        assert tx.outbound.content == STONE
        assert tx.inbound.content == DIRT
        assert tx.target_content == DIRT

    def test_top_up(self):
        chest = InMemoryContainer(9)
        tx = Transaction.from_slot_change(chest, 0, STONE.with_count(10), STONE.with_count(30))

        assert tx.outbound is None
        assert tx.inbound.content == STONE.with_count(20)

    def test_unchanged_slot_has_no_sides(self):
        chest = InMemoryContainer(9)
        tx = Transaction.from_slot_change(chest, 0, STONE, STONE)

        assert tx.outbound is None
        assert tx.inbound is None


class TestDropTransaction:
    """Tests for drop transactions."""

    def test_drop_inbound_has_no_slot(self):
        tx = drop_transaction(STONE)

        assert tx.is_drop
        assert tx.kind is TransactionKind.DROP
        assert tx.outbound is None
        assert tx.inbound == SlotChange(None, None, STONE)
        assert tx.target_content == STONE

    def test_drop_with_outbound_and_target(self):
        chest = InMemoryContainer(9)
        tx = Transaction.drop(STONE, outbound=SlotChange(chest, 0, STONE), target_content=DIRT)

        assert tx.outbound.container is chest
        assert tx.target_content == DIRT


class TestSlotTransactionHelper:
    def test_sides_refer_to_same_slot(self):
        chest = InMemoryContainer(9)
        tx = slot_transaction(chest, 4, DIRT, expected_out=STONE, expected_in=DIRT)

        assert tx.outbound == SlotChange(chest, 4, STONE)
        assert tx.inbound == SlotChange(chest, 4, DIRT)

    def test_omitted_sides_are_none(self):
        chest = InMemoryContainer(9)
        tx = slot_transaction(chest, 4, DIRT)

        assert tx.outbound is None
        assert tx.inbound is None


class TestToDict:
    def test_serializes_containers_by_name(self):
        chest = InMemoryContainer(9, name="chest")
        tx = Transaction.from_slot_change(chest, 2, STONE, AIR)
        tx.failure_count = 2
        tx.last_failure = FailureReason.OUTBOUND_MISMATCH

        data = tx.to_dict()

        assert data["kind"] == "slot"
        assert data["outbound"] == {
            "container": "chest",
            "slot": 2,
            "content": {"id": 1, "meta": 0, "count": 64},
        }
        assert data["inbound"] is None
        assert data["status"] == "pending"
        assert data["failure_count"] == 2
        assert data["last_failure"] == "outbound_mismatch"
        assert data["completed_at"] is None
