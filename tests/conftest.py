"""
Pytest configuration file.

This file ensures that the repository root is in the Python path
so that test files can import the top-level modules.
"""

import sys
from pathlib import Path

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import pytest

import comparison
from iteration import Iter


@pytest.fixture
def make_iter():
    """Build an Iter over a Python list"""
    return lambda items: Iter.of_sequence(list(items))


@pytest.fixture(autouse=True)
def reset_comparison_defaults():
    """Per-type comparison registrations never leak between tests"""
    yield
    comparison.reset_defaults()
