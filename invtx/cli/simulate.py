"""
Scenario CLI Commands

Validate and simulate scenario documents (see ``invtx.scenario``).
"""

import json
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from invtx.core.exceptions import InvtxError
from invtx.scenario import Scenario, ScenarioReport, load_scenario, run_scenario

console = Console()

_STATUS_STYLE = {
    "succeeded": "green",
    "permanently_failed": "red",
    "pending": "yellow",
}


def _load_or_exit(path: str) -> Scenario:
    try:
        return load_scenario(path)
    except (InvtxError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


@click.command(name="validate")
@click.argument("scenario_file", type=click.Path(dir_okay=False))
def validate_cmd(scenario_file: str):
    """Check that a scenario document can be loaded."""
    scenario = _load_or_exit(scenario_file)

    console.print(
        Panel(
            f"[green]✓ Scenario '{scenario.name}' is valid[/green]\n"
            f"{len(scenario.containers)} containers, "
            f"{len(scenario.planned)} transactions, "
            f"{scenario.cycles} cycles",
            title="Valid",
        )
    )


@click.command(name="simulate")
@click.argument("scenario_file", type=click.Path(dir_okay=False))
@click.option("--cycles", "-n", type=click.IntRange(min=1), default=None, help="Cycles to run")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.option("--allow-cheats", is_flag=True, help="Skip all validation")
def simulate_cmd(scenario_file: str, cycles: int | None, as_json: bool, allow_cheats: bool):
    """Run a scenario through a transaction group and show each cycle."""
    scenario = _load_or_exit(scenario_file)
    report = run_scenario(scenario, cycles=cycles, allow_cheats=allow_cheats or None)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _display_report(report)

    sys.exit(0 if report.success else 1)


def _display_report(report: ScenarioReport) -> None:
    if report.success:
        console.print(Panel("[green]✓ All transactions committed[/green]", title=report.name))
    else:
        console.print(Panel("[yellow]⚠ Some transactions did not commit[/yellow]", title=report.name))

    console.print(_cycles_table(report))
    console.print(_transactions_table(report))

    for name, slots in report.containers.items():
        _print_slots(name, slots)
    _print_slots("buffer", report.buffer)

    if report.ejected:
        console.print(f"Ejected: {', '.join(str(stack) for stack in report.ejected)}")


def _cycles_table(report: ScenarioReport) -> Table:
    table = Table(title="Cycles")
    table.add_column("Cycle", justify="right")
    table.add_column("Added")
    table.add_column("Processed", justify="right")
    table.add_column("Committed", justify="right", style="green")
    table.add_column("Deferred", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")

    for snap in report.cycles:
        table.add_row(
            str(snap.cycle),
            ", ".join(snap.added) or "-",
            str(snap.report.processed),
            str(snap.report.succeeded),
            str(snap.report.retried),
            str(snap.report.failed),
        )
    return table


def _transactions_table(report: ScenarioReport) -> Table:
    table = Table(title="Transactions")
    table.add_column("Id")
    table.add_column("Kind")
    table.add_column("Status")
    table.add_column("Failures", justify="right")
    table.add_column("Last failure")

    for label, tx in report.transactions.items():
        style = _STATUS_STYLE.get(tx.status.value, "white")
        table.add_row(
            label,
            tx.kind.value,
            f"[{style}]{tx.status.value}[/{style}]",
            str(tx.failure_count),
            tx.last_failure.value if tx.last_failure else "-",
        )
    return table


def _print_slots(name: str, slots: dict) -> None:
    if not slots:
        console.print(f"[dim]{name}: empty[/dim]")
        return
    contents = ", ".join(f"[{slot}] {stack}" for slot, stack in sorted(slots.items()))
    console.print(f"{name}: {contents}")
