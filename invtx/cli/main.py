"""
invtx CLI - preview how batches of inventory edits are committed.

Commands:
    invtx validate scenario.yaml            # Check a scenario document
    invtx simulate scenario.yaml            # Run it cycle by cycle
    invtx simulate scenario.yaml --json     # Machine-readable report

This creates the 'invtx' command via entry point in pyproject.toml.
"""


def main():
    """Main entry point for the invtx CLI."""
    from invtx.cli.app import cli

    cli()


if __name__ == "__main__":
    main()
