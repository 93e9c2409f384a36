"""Shared type aliases used across perch modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Lifecycle hook: no arguments, sync or async
Hook: TypeAlias = Callable[[], Any]
