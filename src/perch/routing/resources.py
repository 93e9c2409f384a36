"""Resource declaration — build descriptors from plain classes.

A resource is any class whose public methods are operations::

    class UsersId:
        def ImageUrl(self, ctx: Context) -> None:   # GET /users/:id/image_url
            ctx.data = image_url_for(ctx.id)

    class Users:
        gap = ":username"

        def PhotosId(self, ctx):                     # GET /users/:username/photos/:id
            ...

The class name is the resource name. A ``gap`` string attribute or a
``gap()`` method supplies the gap. Methods that do not have the shape
of an operation are left out by the compiler.
"""

import inspect
from typing import Any

from perch.errors import ConfigurationError
from perch.routing.route import OperationDescriptor, ResourceDescriptor

GAP_ATTRIBUTE = "gap"


def describe(
    resource: Any,
    *,
    name: str | None = None,
    gap: str | None = None,
) -> ResourceDescriptor:
    """Describe a resource class or instance.

    A class is instantiated with no arguments. *name* and *gap* override
    what the resource declares.
    """
    instance = resource() if isinstance(resource, type) else resource
    if gap is None:
        gap = _declared_gap(instance)
    operations = tuple(
        OperationDescriptor(member_name, member)
        for member_name, member in inspect.getmembers(instance, inspect.isroutine)
        if not member_name.startswith("_") and member_name != GAP_ATTRIBUTE
    )
    return ResourceDescriptor(
        name=name or type(instance).__name__,
        operations=operations,
        gap=gap,
    )


def _declared_gap(instance: Any) -> str | None:
    declared = getattr(instance, GAP_ATTRIBUTE, None)
    if callable(declared):
        declared = declared()
    if declared is None:
        return None
    if not isinstance(declared, str):
        msg = f"{type(instance).__name__}.gap must be a string, got {type(declared).__name__}"
        raise ConfigurationError(msg)
    return declared
