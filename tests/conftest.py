"""
Shared pytest fixtures for the EventPath test suite.

Provides reusable fixtures for creating test events, sample histories,
and paths to the fixture files used across unit and integration tests.
"""

from pathlib import Path

import pytest

from eventpath.core.event import Event


@pytest.fixture
def add_item() -> Event:
    """An add-to-cart event."""
    return Event.of(event_type="add_item", user_name="alice", cart_id="c-1")


@pytest.fixture
def remove_item() -> Event:
    """A remove-from-cart event."""
    return Event.of(event_type="remove_item", user_name="alice", cart_id="c-1")


@pytest.fixture
def abandon() -> Event:
    """A cart-abandonment event."""
    return Event.of(event_type="abandon", user_name="alice", cart_id="c-1")


@pytest.fixture
def abandoned_cart(add_item: Event, abandon: Event) -> list[Event]:
    """Two items added, then the cart abandoned."""
    return [add_item, add_item, abandon]


@pytest.fixture
def tmp_history_file(tmp_path: Path) -> Path:
    """Path for a temporary history CSV file."""
    return tmp_path / "history.csv"


@pytest.fixture
def tmp_pattern_file(tmp_path: Path) -> Path:
    """Path for a temporary pattern file."""
    return tmp_path / "pattern.pat"


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def histories_dir(fixtures_dir: Path) -> Path:
    """Path to the history fixtures directory."""
    return fixtures_dir / "histories"


@pytest.fixture
def patterns_dir(fixtures_dir: Path) -> Path:
    """Path to the pattern fixtures directory."""
    return fixtures_dir / "patterns"
