"""Turning a ``"module:attribute"`` string into a perch ``App``.

Used by both ``perch routes`` and ``perch run``.
"""

import importlib

from perch.app import App


def resolve_app(import_string: str) -> App:
    """Import *import_string* and return the ``App`` it names.

    The attribute defaults to ``app``. If it names a plain callable, that
    callable is treated as a factory and called with no arguments.

    Raises:
        ModuleNotFoundError: The module does not exist.
        AttributeError: The module has no such attribute.
        TypeError: The target is not an ``App``, or its factory failed.
    """
    module_name, _, attribute = import_string.partition(":")
    target = getattr(importlib.import_module(module_name), attribute or "app")

    if not isinstance(target, App) and callable(target):
        try:
            target = target()
        except Exception as exc:
            msg = f"app factory {import_string!r} failed: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(target, App):
        msg = f"{import_string!r} is a {type(target).__name__}, not a perch.App instance"
        raise TypeError(msg)
    return target
