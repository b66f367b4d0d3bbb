"""
Pytest configuration and shared fixtures for transaction executor tests
"""

import pytest

from invtx.backends import InMemoryActor, InMemoryContainer
from invtx.core.config import GroupConfig, reset_config
from invtx.core.content import ItemStack
from invtx.core.group import TransactionGroup
from invtx.core.logger import set_logger
from invtx.notifications import RecordingNotificationSink

COBBLESTONE = 4


@pytest.fixture(autouse=True)
def isolated_config():
    """Every test starts from the default global configuration and logger."""
    reset_config()
    set_logger(None)
    yield
    reset_config()
    set_logger(None)


@pytest.fixture
def cobblestone():
    """A full stack of cobblestone."""
    return ItemStack(COBBLESTONE, count=64)


@pytest.fixture
def chest():
    return InMemoryContainer(27, name="chest")


@pytest.fixture
def actor():
    return InMemoryActor("steve")


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def group(actor, sink):
    """Group with the default retry bound of 5."""
    return TransactionGroup(actor, sink=sink, config=GroupConfig())
