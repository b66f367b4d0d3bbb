"""
Scenario simulation

Describes containers, an actor and a list of transactions in YAML, then runs
them through a ``TransactionGroup`` cycle by cycle. Used by ``invtx simulate``
to preview how a batch of client edits would be committed.

Example scenario:

    name: take-from-chest
    allowed_retries: 5
    actor:
      name: steve
    containers:
      chest:
        size: 27
        slots:
          0: {id: 1, count: 64}
    transactions:
      - id: take
        container: chest
        slot: 0
        source: {id: 1, count: 64}
        target: {id: 0}
      - id: drop-it
        kind: drop
        in: {id: 1, count: 64}
        cycle: 2

A transaction either gives ``source``/``target`` (both sides derived with
``compute_change``) or explicit ``out``/``in``/``target`` contents.
``cycle`` (default 1) is the cycle before which it is added.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from invtx.backends.memory import DEFAULT_BUFFER_SIZE, InMemoryActor, InMemoryContainer
from invtx.core.config import GroupConfig
from invtx.core.content import ItemStack
from invtx.core.context import ExecutionContext
from invtx.core.exceptions import ScenarioError
from invtx.core.group import TransactionGroup
from invtx.core.logger import get_logger
from invtx.core.retry import DEFAULT_ALLOWED_RETRIES
from invtx.core.transaction import SlotChange, Transaction
from invtx.core.types import CycleReport, TransactionKind, TransactionStatus
from invtx.notifications import RecordingNotificationSink

logger = get_logger(__name__)


@dataclass
class PlannedTransaction:
    """A scenario transaction and the cycle before which it is queued."""

    label: str
    cycle: int
    transaction: Transaction


@dataclass
class Scenario:
    """A parsed scenario document."""

    name: str
    config: GroupConfig
    actor: InMemoryActor
    containers: dict[str, InMemoryContainer]
    planned: list[PlannedTransaction]
    cycles: int
    document: dict[str, Any] | None = field(default=None, repr=False)

    @property
    def last_add_cycle(self) -> int:
        return max((p.cycle for p in self.planned), default=1)


@dataclass
class CycleSnapshot:
    """What happened during one simulated cycle."""

    cycle: int
    added: list[str]
    report: CycleReport
    notified: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class ScenarioReport:
    """Result of running a scenario."""

    name: str
    cycles: list[CycleSnapshot]
    transactions: dict[str, Transaction]
    containers: dict[str, dict[int, ItemStack]]
    buffer: dict[int, ItemStack]
    ejected: list[ItemStack]

    @property
    def success(self) -> bool:
        return all(t.status is TransactionStatus.SUCCEEDED for t in self.transactions.values())

    @property
    def pending(self) -> list[str]:
        return [label for label, t in self.transactions.items() if t.is_pending]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "success": self.success,
            "cycles": [
                {
                    "cycle": snap.cycle,
                    "added": snap.added,
                    "processed": snap.report.processed,
                    "retries_admitted": snap.report.retries_admitted,
                    "succeeded": snap.report.succeeded,
                    "retried": snap.report.retried,
                    "failed": snap.report.failed,
                    "notified": [{"id": label, "status": status} for label, status in snap.notified],
                }
                for snap in self.cycles
            ],
            "transactions": {
                label: {
                    "status": t.status.value,
                    "failure_count": t.failure_count,
                    "last_failure": t.last_failure.value if t.last_failure else None,
                }
                for label, t in self.transactions.items()
            },
            "containers": {
                name: {str(slot): stack.to_dict() for slot, stack in slots.items()}
                for name, slots in self.containers.items()
            },
            "buffer": {str(slot): stack.to_dict() for slot, stack in self.buffer.items()},
            "ejected": [stack.to_dict() for stack in self.ejected],
        }


def load_scenario(source: str | Path | dict[str, Any], substitute_env: bool = True) -> Scenario:
    """
    Load a scenario from a YAML file or an already parsed dictionary.

    Raises:
        ScenarioError: If the document is invalid
        FileNotFoundError: If the file does not exist
    """
    if isinstance(source, dict):
        data = source
    else:
        path = Path(source)
        if not path.exists():
            msg = f"Scenario file not found: {source}"
            raise FileNotFoundError(msg)
        with path.open() as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                msg = f"Invalid YAML in {source}: {e}"
                raise ScenarioError(msg) from e

        if substitute_env and isinstance(data, dict):
            from invtx.core.env import get_env

            data = get_env().substitute_dict(data)

    if not isinstance(data, dict):
        msg = "Scenario must be a mapping"
        raise ScenarioError(msg)

    return _build_scenario(data)


def _build_scenario(data: dict[str, Any]) -> Scenario:
    allowed_retries = _as_int(data.get("allowed_retries", DEFAULT_ALLOWED_RETRIES), "allowed_retries")
    if allowed_retries < 1:
        msg = f"allowed_retries must be at least 1, got {allowed_retries}"
        raise ScenarioError(msg)

    config = GroupConfig(
        allowed_retries=allowed_retries,
        allow_cheats=_as_bool(data.get("allow_cheats", False), "allow_cheats"),
    )
    containers = _build_containers(data.get("containers") or {})
    actor = _build_actor(data.get("actor") or {})

    raw_transactions = data.get("transactions") or []
    if not isinstance(raw_transactions, list):
        msg = "'transactions' must be a list"
        raise ScenarioError(msg)

    planned = [
        _build_planned(index, entry, containers) for index, entry in enumerate(raw_transactions)
    ]
    labels = [p.label for p in planned]
    if len(set(labels)) != len(labels):
        msg = f"Duplicate transaction ids in scenario: {labels}"
        raise ScenarioError(msg)

    last_add = max((p.cycle for p in planned), default=1)
    cycles = data.get("cycles")
    cycles = (
        _as_int(cycles, "cycles") if cycles is not None else last_add + allowed_retries - 1
    )

    return Scenario(
        name=str(data.get("name", "scenario")),
        config=config,
        actor=actor,
        containers=containers,
        planned=planned,
        cycles=cycles,
        document=copy.deepcopy(data),
    )


def _as_int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        msg = f"'{what}' must be an integer, got {value!r}"
        raise ScenarioError(msg) from e


_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off", "")


def _as_bool(value: Any, what: str) -> bool:
    # ${VAR} substitution leaves strings behind, so "false" must not be truthy
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    msg = f"'{what}' must be true or false, got {value!r}"
    raise ScenarioError(msg)


def _stack(value: Any, what: str) -> ItemStack:
    if value is None:
        return ItemStack.from_dict(None)
    if not isinstance(value, dict):
        msg = f"{what} must be a mapping like {{id: 1, count: 64}}, got {value!r}"
        raise ScenarioError(msg)
    try:
        return ItemStack.from_dict(value)
    except (TypeError, ValueError) as e:
        msg = f"Invalid {what}: {e}"
        raise ScenarioError(msg) from e


def _fill(container: InMemoryContainer, slots: Any, what: str) -> None:
    if not isinstance(slots, dict):
        msg = f"{what} slots must be a mapping of slot index to content"
        raise ScenarioError(msg)
    for slot, content in slots.items():
        index = _as_int(slot, f"{what} slot")
        try:
            container.set_content(index, _stack(content, f"{what}[{index}]"), notify=False)
        except IndexError as e:
            raise ScenarioError(str(e)) from e
    container.writes.clear()


def _build_containers(raw: Any) -> dict[str, InMemoryContainer]:
    if not isinstance(raw, dict):
        msg = "'containers' must be a mapping of name to container"
        raise ScenarioError(msg)

    containers = {}
    for name, settings in raw.items():
        if settings is None:
            settings = {}
        if not isinstance(settings, dict):
            msg = f"Container '{name}' must be a mapping like {{size: 27}}, got {settings!r}"
            raise ScenarioError(msg)
        size = _as_int(settings.get("size", 27), f"{name}.size")
        if size < 1:
            msg = f"Container '{name}' must have a positive size"
            raise ScenarioError(msg)
        container = _container(
            size,
            str(name),
            _as_int(settings.get("max_stack_size", 64), f"{name}.max_stack_size"),
        )
        _fill(container, settings.get("slots") or {}, str(name))
        containers[str(name)] = container
    return containers


def _container(size: int, name: str, max_stack_size: int = 64) -> InMemoryContainer:
    try:
        return InMemoryContainer(size=size, name=name, max_stack_size=max_stack_size)
    except ValueError as e:
        msg = f"Invalid container '{name}': {e}"
        raise ScenarioError(msg) from e


def _build_actor(raw: Any) -> InMemoryActor:
    if not isinstance(raw, dict):
        msg = "'actor' must be a mapping"
        raise ScenarioError(msg)

    name = str(raw.get("name", "actor"))
    buffer_size = _as_int(raw.get("buffer_size", DEFAULT_BUFFER_SIZE), "actor.buffer_size")
    if buffer_size < 1:
        msg = f"actor.buffer_size must be at least 1, got {buffer_size}"
        raise ScenarioError(msg)
    buffer = _container(buffer_size, f"{name}:buffer")
    _fill(buffer, raw.get("buffer") or {}, "actor.buffer")
    return InMemoryActor(
        name,
        buffer=buffer,
        unrestricted=_as_bool(raw.get("unrestricted", False), "actor.unrestricted"),
    )


def _build_planned(
    index: int, entry: Any, containers: dict[str, InMemoryContainer]
) -> PlannedTransaction:
    if not isinstance(entry, dict):
        msg = f"Transaction #{index} must be a mapping"
        raise ScenarioError(msg)

    label = str(entry.get("id", f"tx{index + 1}"))
    cycle = _as_int(entry.get("cycle", 1), f"{label}.cycle")
    if cycle < 1:
        msg = f"Transaction '{label}' has cycle {cycle}; cycles start at 1"
        raise ScenarioError(msg)

    kind_name = str(entry.get("kind", "slot")).lower()
    try:
        kind = TransactionKind(kind_name)
    except ValueError as e:
        msg = f"Transaction '{label}' has unknown kind '{kind_name}'"
        raise ScenarioError(msg) from e

    container, slot = _resolve_slot(label, entry, containers, required=kind is TransactionKind.SLOT)

    if "source" in entry:
        if container is None:
            msg = f"Transaction '{label}' uses source/target without a container slot"
            raise ScenarioError(msg)
        transaction = Transaction.from_slot_change(
            container,
            slot,
            _stack(entry.get("source"), f"{label}.source"),
            _stack(entry.get("target"), f"{label}.target"),
            kind=kind,
        )
    elif kind is TransactionKind.DROP:
        content = _stack(entry.get("in"), f"{label}.in")
        out = entry.get("out")
        transaction = Transaction.drop(
            content,
            outbound=SlotChange(container, slot, _stack(out, f"{label}.out"))
            if out is not None and container is not None
            else None,
            target_content=_stack(entry["target"], f"{label}.target") if "target" in entry else None,
        )
    else:
        out = entry.get("out")
        inbound = entry.get("in")
        transaction = Transaction(
            outbound=SlotChange(container, slot, _stack(out, f"{label}.out"))
            if out is not None
            else None,
            inbound=SlotChange(container, slot, _stack(inbound, f"{label}.in"))
            if inbound is not None
            else None,
            target_content=_stack(entry.get("target"), f"{label}.target"),
        )

    return PlannedTransaction(label=label, cycle=cycle, transaction=transaction)


def _resolve_slot(
    label: str, entry: dict[str, Any], containers: dict[str, InMemoryContainer], required: bool
) -> tuple[InMemoryContainer | None, int | None]:
    name = entry.get("container")
    if name is None:
        if required:
            msg = f"Transaction '{label}' needs a container"
            raise ScenarioError(msg)
        return None, None

    if str(name) not in containers:
        msg = f"Transaction '{label}' refers to unknown container '{name}'"
        raise ScenarioError(msg)
    container = containers[str(name)]

    slot = _as_int(entry.get("slot"), f"{label}.slot")
    if not 0 <= slot < container.size:
        msg = f"Transaction '{label}' slot {slot} out of range for '{name}' (size {container.size})"
        raise ScenarioError(msg)
    return container, slot


def run_scenario(
    scenario: Scenario, cycles: int | None = None, allow_cheats: bool | None = None
) -> ScenarioReport:
    """
    Run a scenario through a transaction group.

    Scenarios returned by ``load_scenario`` are rebuilt from their document
    for every run, so the same scenario can be run again with other
    overrides and its own containers and transactions are left untouched.

    Args:
        scenario: Parsed scenario
        cycles: Number of execute() cycles (default: the scenario's own)
        allow_cheats: Override the scenario's bypass flag

    Returns:
        ScenarioReport with per-cycle outcomes and final container contents
    """
    if scenario.document is not None:
        scenario = _build_scenario(scenario.document)

    total_cycles = cycles if cycles is not None else scenario.cycles
    cheats = scenario.config.allow_cheats if allow_cheats is None else allow_cheats
    context = ExecutionContext(allow_cheats=cheats)

    sink = RecordingNotificationSink()
    group = TransactionGroup(scenario.actor, sink=sink, config=scenario.config)
    labels = {p.transaction.transaction_id: p.label for p in scenario.planned}

    logger.info(f"Running scenario '{scenario.name}' for {total_cycles} cycles")

    snapshots = []
    for cycle in range(1, total_cycles + 1):
        added = []
        for planned in scenario.planned:
            if planned.cycle == cycle:
                group.add_transaction(planned.transaction)
                added.append(planned.label)

        seen = len(sink.notified)
        group.execute(context)
        snapshots.append(
            CycleSnapshot(
                cycle=cycle,
                added=added,
                report=group.last_report,
                notified=[
                    (labels[t.transaction_id], t.status.value) for t in sink.notified[seen:]
                ],
            )
        )

    return ScenarioReport(
        name=scenario.name,
        cycles=snapshots,
        transactions={p.label: p.transaction for p in scenario.planned},
        containers={name: c.snapshot() for name, c in scenario.containers.items()},
        buffer=scenario.actor.get_transient_buffer().snapshot(),
        ejected=list(scenario.actor.ejected),
    )
