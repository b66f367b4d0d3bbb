"""
Execution context passed into ``TransactionGroup.execute()``.

Carries the server-wide state the executor reads instead of reaching for
globals, so a cycle can be run with or without validation in isolation.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExecutionContext:
    """
    Per-cycle execution settings.

    Attributes:
        allow_cheats: Disables all validation for every transaction, whatever
            the actor's edit mode
    """

    allow_cheats: bool = False

