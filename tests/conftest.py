"""
Test configuration for taxengine tests.

sys.path is configured so both 'taxengine...' and 'tests.demo_profiles'
resolve without installing the package, whichever directory pytest runs from.
"""
import sys
from pathlib import Path

import pytest

_project_root = Path(__file__).parent.parent

if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from taxengine.calculator.schemas import TaxSubject  # noqa: E402
from tests.demo_profiles import DEMO_PROFILES  # noqa: E402


@pytest.fixture(params=sorted(DEMO_PROFILES))
def demo_case(request) -> tuple[TaxSubject, dict]:
    """(TaxSubject, expected values) for every demo subject."""
    data = DEMO_PROFILES[request.param]
    return TaxSubject.model_validate(data["subject"]), data["expected"]
