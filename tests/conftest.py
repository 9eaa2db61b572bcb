# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for prover tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.models import BlockHeader  # noqa: E402


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


async def _header_stream(numbers):
    for number in numbers:
        yield BlockHeader(number=number, hash=f"0x{number:064x}", timestamp=1_700_000_000 + number)


class RecordingSleep:
    """Stand-in for asyncio.sleep that returns immediately and records delays."""

    def __init__(self, events=None):
        self.delays = []
        self.events = events if events is not None else []

    async def __call__(self, seconds):
        self.delays.append(seconds)
        self.events.append(("sleep", seconds))


@pytest.fixture
def headers():
    """Factory: async stream of headers with the given block numbers, in order."""
    return _header_stream


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
