"""
Reference collaborator implementations.
"""

from invtx.backends.memory import InMemoryActor, InMemoryContainer

__all__ = [
    "InMemoryActor",
    "InMemoryContainer",
]
