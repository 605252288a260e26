import os
import sys
from typing import Dict, List, Optional

import pytest

# Ensure project root is on sys.path for imports like `core.*`
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


class FakeReadmeFetcher:
    """Serves canned readme bodies and records every requested URL."""

    def __init__(self, bodies: Optional[Dict[str, str]] = None):
        self.bodies = bodies or {}
        self.calls: List[str] = []

    async def fetch(self, url: str) -> Optional[str]:
        self.calls.append(url)
        return self.bodies.get(url)


@pytest.fixture
def fake_fetcher():
    return FakeReadmeFetcher()
