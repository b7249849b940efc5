"""Pytest configuration for boardsync tests."""
import sys
from pathlib import Path

import pytest

# Add project root to path so 'boardsync' can be imported without installing
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from helpers import FakeBoardClient  # noqa: E402


@pytest.fixture
def fake_client():
    """Empty in-memory board client."""
    return FakeBoardClient()
