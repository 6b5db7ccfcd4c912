"""
Shared pytest fixtures for fluxion tests.

Every test gets fresh stores and channels; nothing is shared at module level.
"""

import pytest

from fluxion import ActionChannel, Subscription
from tests.factories import create_connected_message_view, create_message_store


@pytest.fixture
def message_store():
    """Store holding a message plus the channel whose reducer replaces it."""
    return create_message_store()


@pytest.fixture
def store(message_store):
    return message_store[0]


@pytest.fixture
def next_message(message_store):
    return message_store[1]


@pytest.fixture
def clicked():
    """Channel the connected view's on_click publishes to."""
    return ActionChannel(name="clicked")


@pytest.fixture
def cleanup():
    return Subscription()


@pytest.fixture
def connected_view(clicked, cleanup):
    return create_connected_message_view(clicked, {"cleanup": cleanup})


@pytest.fixture
def errors():
    """List collecting subscriber errors; pass `errors.handler` as on_error."""

    class ErrorLog(list):
        def handler(self, error, callback):
            self.append(error)

    return ErrorLog()
