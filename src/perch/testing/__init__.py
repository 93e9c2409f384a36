"""Test utilities for perch applications.

    from perch.testing import TestClient, name_values
"""

from perch.testing.client import TestClient
from perch.testing.requests import name_values

__all__ = [
    "TestClient",
    "name_values",
]
