import sys, os

# Ensure src (and the repo root, for tests.helpers) is on path for test imports
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC = os.path.join(ROOT, 'src')
for path in (SRC, ROOT):
    if path not in sys.path:
        sys.path.insert(0, path)

import pytest

from match3.events.bus import EventBus
from tests.helpers import make_engine, scenario_layout


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def scenario_engine(bus):
    """9x9 board whose only legal move is (4,4)<->(4,5), completing AAA on row 4."""
    return make_engine(scenario_layout(), bus=bus)
