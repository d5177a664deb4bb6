"""Pytest configuration for launchpad tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from launchpad.inmemory import (
    InMemoryHostingService,
    InMemorySourceControlService,
    InMemoryVoiceAgentService,
)


@pytest.fixture
def source_control():
    return InMemorySourceControlService(owner='acme-org')


@pytest.fixture
def hosting():
    return InMemoryHostingService()


@pytest.fixture
def voice():
    return InMemoryVoiceAgentService()
