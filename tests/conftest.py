"""
Pytest configuration and shared fixtures for all rsluau tests.

The compiler driver is stateless between calls, so one instance is shared
across the whole session.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from rsluau.compiler.driver import CompilerDriver


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_compiler():
    """Session-scoped stateless compiler instance shared across ALL tests."""
    return CompilerDriver()


# =============================================================================
# Class-scoped fixtures (shared within a test class)
# =============================================================================

@pytest.fixture(scope="class")
def compiler(session_compiler):
    """Class-scoped compiler - returns session compiler (stateless, safe to share)."""
    return session_compiler
