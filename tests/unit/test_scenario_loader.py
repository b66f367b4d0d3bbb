"""
Tests for loading and running simulation scenarios.
"""

from pathlib import Path

import pytest

from invtx.core.content import ItemStack
from invtx.core.exceptions import ScenarioError
from invtx.core.types import FailureReason, TransactionKind, TransactionStatus
from invtx.scenario import load_scenario, run_scenario

STONE = ItemStack(1, count=64)


def take_and_drop():
    return {
        "name": "take-and-drop",
        "actor": {"name": "steve"},
        "containers": {"chest": {"size": 27, "slots": {0: {"id": 1, "count": 64}}}},
        "transactions": [
            {
                "id": "take",
                "container": "chest",
                "slot": 0,
                "source": {"id": 1, "count": 64},
                "target": {"id": 0},
            },
            {"id": "drop-it", "kind": "drop", "in": {"id": 1, "count": 64}, "cycle": 2},
        ],
    }


def doomed():
    return {
        "name": "doomed",
        "allowed_retries": 2,
        "containers": {"chest": {"size": 9}},
        "transactions": [
            {"id": "bad", "container": "chest", "slot": 5, "out": {"id": 1, "count": 64}},
        ],
    }


class TestLoadScenario:
    """Tests for parsing scenario documents."""

    def test_load_from_dict(self):
        scenario = load_scenario(take_and_drop())

        assert scenario.name == "take-and-drop"
        assert scenario.actor.name == "steve"
        assert scenario.containers["chest"].get_content(0) == STONE
        assert scenario.containers["chest"].writes == []
        assert [p.label for p in scenario.planned] == ["take", "drop-it"]
        assert scenario.planned[1].transaction.kind is TransactionKind.DROP
        assert scenario.last_add_cycle == 2
        assert scenario.config.allowed_retries == 5

    def test_default_cycles_cover_every_retry(self):
        assert load_scenario(take_and_drop()).cycles == 6
        assert load_scenario(doomed()).cycles == 2

    def test_explicit_form(self):
        scenario = load_scenario(doomed())
        tx = scenario.planned[0].transaction

        assert tx.outbound.slot == 5
        assert tx.outbound.content == STONE
        assert tx.inbound is None
        assert tx.target_content.is_air

    def test_default_labels(self):
        data = doomed()
        del data["transactions"][0]["id"]
        assert load_scenario(data).planned[0].label == "tx1"

    def test_actor_buffer(self):
        data = take_and_drop()
        data["actor"] = {"name": "alex", "buffer_size": 3, "buffer": {2: {"id": 1, "count": 5}}}

        scenario = load_scenario(data)

        buffer = scenario.actor.get_transient_buffer()
        assert buffer.size == 3
        assert buffer.snapshot() == {2: ItemStack(1, count=5)}

    def test_load_from_yaml_with_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("INVTX_TEST_CHEST_SIZE", "5")
        path = tmp_path / "scenario.yaml"
        path.write_text(
            "name: from-file\n"
            "containers:\n"
            "  chest:\n"
            "    size: ${INVTX_TEST_CHEST_SIZE}\n"
            "transactions:\n"
            "  - container: chest\n"
            "    slot: 4\n"
            "    source: {id: 0}\n"
            "    target: {id: 1, count: 2}\n"
        )

        scenario = load_scenario(path)

        assert scenario.containers["chest"].size == 5
        assert scenario.planned[0].transaction.inbound.content == ItemStack(1, count=2)

    def test_substituted_flags_are_parsed_as_booleans(self, tmp_path, monkeypatch):
        monkeypatch.setenv("INVTX_TEST_CHEATS", "false")
        monkeypatch.delenv("INVTX_TEST_UNRESTRICTED", raising=False)
        path = tmp_path / "flags.yaml"
        path.write_text(
            "allow_cheats: ${INVTX_TEST_CHEATS}\n"
            "actor:\n"
            "  unrestricted: ${INVTX_TEST_UNRESTRICTED:-false}\n"
        )

        scenario = load_scenario(path)

        assert scenario.config.allow_cheats is False
        assert scenario.actor.is_unrestricted_edit_mode() is False

    def test_substituted_flags_accept_true_spellings(self, tmp_path, monkeypatch):
        monkeypatch.setenv("INVTX_TEST_CHEATS", "Yes")
        monkeypatch.setenv("INVTX_TEST_UNRESTRICTED", "1")
        path = tmp_path / "flags.yaml"
        path.write_text(
            "allow_cheats: ${INVTX_TEST_CHEATS}\n"
            "actor:\n"
            "  unrestricted: ${INVTX_TEST_UNRESTRICTED}\n"
        )

        scenario = load_scenario(path)

        assert scenario.config.allow_cheats is True
        assert scenario.actor.is_unrestricted_edit_mode() is True

    @pytest.mark.parametrize(
        "mutate,match",
        [
            (lambda d: d["transactions"][0].update(container="barrel"), "unknown container"),
            (lambda d: d["transactions"][0].update(slot=99), "out of range"),
            (lambda d: d["transactions"][0].update(kind="teleport"), "unknown kind"),
            (lambda d: d["transactions"][0].update(cycle=0), "cycles start at 1"),
            (lambda d: d["transactions"][0].pop("container"), "needs a container"),
            (lambda d: d.update(allowed_retries=0), "at least 1"),
            (lambda d: d.update(transactions={"bad": {}}), "must be a list"),
            (lambda d: d["transactions"].append({"id": "bad", "kind": "drop"}), "Duplicate"),
            (lambda d: d["transactions"][0].update(out={"id": 1, "count": -3}), "Invalid"),
            (lambda d: d.update(containers={"chest": 27}), "must be a mapping"),
            (lambda d: d["containers"]["chest"].update(max_stack_size=0), "Invalid container"),
            (lambda d: d.update(actor={"buffer_size": 0}), "buffer_size must be at least 1"),
            (lambda d: d.update(allow_cheats="maybe"), "true or false"),
            (lambda d: d.update(actor={"unrestricted": "sometimes"}), "true or false"),
        ],
        ids=[
            "unknown-container",
            "slot-range",
            "kind",
            "cycle",
            "missing-container",
            "retries",
            "transactions-type",
            "duplicate-id",
            "negative-count",
            "container-type",
            "max-stack-size",
            "buffer-size",
            "cheats-flag",
            "unrestricted-flag",
        ],
    )
    def test_invalid_documents(self, mutate, match):
        data = doomed()
        mutate(data)

        with pytest.raises(ScenarioError, match=match):
            load_scenario(data)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("containers: [unclosed\n")

        with pytest.raises(ScenarioError, match="Invalid YAML"):
            load_scenario(path)

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ScenarioError, match="mapping"):
            load_scenario(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_scenario(tmp_path / "nope.yaml")


class TestRunScenario:
    """Tests for running scenarios cycle by cycle."""

    def test_take_and_drop(self):
        report = run_scenario(load_scenario(take_and_drop()))

        assert report.success
        assert len(report.cycles) == 6
        assert report.cycles[0].added == ["take"]
        assert report.cycles[0].notified == [("take", "succeeded")]
        assert report.cycles[1].notified == [("drop-it", "succeeded")]
        assert report.containers == {"chest": {}}
        assert report.buffer == {}
        assert report.ejected == [STONE]

    def test_permanent_failure(self):
        report = run_scenario(load_scenario(doomed()))

        bad = report.transactions["bad"]
        assert not report.success
        assert bad.status is TransactionStatus.PERMANENTLY_FAILED
        assert bad.failure_count == 2
        assert report.cycles[0].report.retried == 1
        assert report.cycles[1].notified == [("bad", "permanently_failed")]

    def test_too_few_cycles_leaves_pending(self):
        report = run_scenario(load_scenario(take_and_drop()), cycles=1)

        assert not report.success
        assert report.pending == ["drop-it"]

    def test_allow_cheats_override(self):
        report = run_scenario(load_scenario(doomed()), allow_cheats=True)

        assert report.success
        assert report.transactions["bad"].last_failure is None

    def test_scenario_can_be_run_again(self):
        scenario = load_scenario(doomed())

        first = run_scenario(scenario)
        second = run_scenario(scenario, allow_cheats=True)

        assert first.transactions["bad"].status is TransactionStatus.PERMANENTLY_FAILED
        assert second.success
        assert second.transactions["bad"] is not first.transactions["bad"]

    def test_run_leaves_scenario_untouched(self):
        scenario = load_scenario(take_and_drop())

        run_scenario(scenario)

        assert scenario.containers["chest"].get_content(0) == STONE
        assert scenario.containers["chest"].writes == []
        assert scenario.actor.ejected == []
        assert all(p.transaction.is_pending for p in scenario.planned)
        assert scenario.planned[0].transaction.failure_count == 0

    def test_to_dict(self):
        report = run_scenario(load_scenario(doomed()), cycles=1)

        data = report.to_dict()

        assert data["name"] == "doomed"
        assert data["success"] is False
        assert data["cycles"][0]["retried"] == 1
        assert data["transactions"]["bad"] == {
            "status": "pending",
            "failure_count": 1,
            "last_failure": FailureReason.OUTBOUND_MISMATCH.value,
        }
        assert data["containers"] == {"chest": {}}


class TestBundledExample:
    """The scenario shipped in examples/ runs as documented."""

    def test_chest_shuffle(self, monkeypatch):
        monkeypatch.delenv("RETRIES", raising=False)
        path = Path(__file__).parents[2] / "examples" / "chest_shuffle.yaml"

        report = run_scenario(load_scenario(path))

        statuses = {label: tx.status for label, tx in report.transactions.items()}
        assert statuses == {
            "take-stone": TransactionStatus.SUCCEEDED,
            "place-stone": TransactionStatus.SUCCEEDED,
            "swap-cobble": TransactionStatus.SUCCEEDED,
            "throw-dirt": TransactionStatus.SUCCEEDED,
            "late-take": TransactionStatus.PERMANENTLY_FAILED,
        }
        assert report.transactions["late-take"].failure_count == 5
        assert report.containers["chest"] == {
            1: ItemStack(3, count=8),
            5: STONE,
        }
        assert report.ejected == [ItemStack(3, count=8)]
        assert report.buffer == {1: ItemStack(4, count=32)}
