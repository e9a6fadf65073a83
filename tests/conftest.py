"""
Pytest configuration and shared fixtures.

Key fixtures:
- now: fixed evaluation instant (Monday 2026-03-16 12:00 UTC)
- make_deal / make_lender / make_milestone: entity factories
- preferences: default Preferences

Every test is offline: the engine is pure and the API tests use
FastAPI's TestClient with a temporary preferences file.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from deal_advisor.models import Deal, Lender, Milestone, Preferences  # noqa: E402

NOW = datetime(2026, 3, 16, 12, 0, tzinfo=timezone.utc)


def ago(days: float) -> datetime:
    """Timestamp `days` days before NOW."""
    return NOW - timedelta(days=days)


def on(days_from_today: int):
    """Calendar date relative to NOW's date."""
    return NOW.date() + timedelta(days=days_from_today)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def preferences() -> Preferences:
    return Preferences()


@pytest.fixture
def make_lender():
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Lender:
        n = next(counter)
        data = {
            'id': f'lender_{n}',
            'name': f'Lender {n}',
            'stage': 'Due Diligence',
            'updated_at': NOW,
        }
        data.update(overrides)
        return Lender(**data)

    return _make


@pytest.fixture
def make_deal():
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Deal:
        n = next(counter)
        data = {
            'id': f'deal_{n}',
            'company': f'Company {n}',
            'status': 'active',
            'stage': 'Marketing',
            'updated_at': NOW,
        }
        data.update(overrides)
        return Deal(**data)

    return _make


@pytest.fixture
def make_milestone():
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Milestone:
        n = next(counter)
        data = {
            'id': f'ms_{n}',
            'title': f'Milestone {n}',
            'completed': False,
        }
        data.update(overrides)
        return Milestone(**data)

    return _make
