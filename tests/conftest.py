import os
import sys

import pytest


# Ensure the repository root (which holds `src/`) is on sys.path for `from src...` imports
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.engine.standard import StandardCheckersRules  # noqa: E402
from src.engine.turkish import TurkishCheckersRules  # noqa: E402


@pytest.fixture
def standard() -> StandardCheckersRules:
    return StandardCheckersRules()


@pytest.fixture
def turkish() -> TurkishCheckersRules:
    return TurkishCheckersRules()
