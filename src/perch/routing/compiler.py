"""Route table compiler.

Turns resource descriptors into an immutable ``RouteKey -> handler``
table by naming convention::

    UsersId.ImageUrl          -> GET    /users/:id/image_url
    UsersId.PostPost          -> POST   /users/:id/post
    Users(gap=":username")
        .PhotosId             -> GET    /users/:username/photos/:id
        .Delete               -> DELETE /users/:username

Resource and operation names go through ``convert_name`` first. A
leading verb word selects the HTTP verb; anything else routes as GET.
"""

import inspect
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from perch.naming import DEFAULT_SEPARATOR, convert_name
from perch.routing.route import ID_PLACEHOLDER, ResourceDescriptor, RouteKey, Verb

logger = logging.getLogger("perch.routing")

type GapTable = Mapping[str, tuple[str, ...]]

_VERB_WORDS = {verb.lower(): verb for verb in Verb}


class RouteTable(Mapping[RouteKey, Callable[..., Any]]):
    """Immutable mapping from route key to operation handler."""

    __slots__ = ("_routes",)

    def __init__(self, routes: Mapping[RouteKey, Callable[..., Any]] | None = None) -> None:
        self._routes = dict(routes or {})

    def __getitem__(self, key: RouteKey) -> Callable[..., Any]:
        return self._routes[key]

    def __iter__(self) -> Iterator[RouteKey]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RouteTable({len(self)} routes)"

    def handled_paths(self, base_path: str = "") -> str:
        """Every ``"VERB <base><template>"``, sorted and newline-joined.

        Useful as a snapshot to detect unintended API surface changes.
        The base path's trailing ``/`` is dropped.
        """
        base = base_path.removesuffix("/")
        return "\n".join(sorted(f"{key.verb} {base}{key.template}" for key in self))


def compile_routes(
    resources: Iterable[ResourceDescriptor],
    *,
    separator: str = DEFAULT_SEPARATOR,
) -> tuple[RouteTable, GapTable]:
    """Compile *resources* into a route table and a gap table.

    Later registrations of an identical key replace earlier ones.
    Operations that do not look like operations (see ``is_operation``)
    are skipped.
    """
    routes: dict[RouteKey, Callable[..., Any]] = {}
    gaps: dict[str, tuple[str, ...]] = {}
    id_suffix = f"{separator}id"

    for resource in resources:
        token = convert_name(resource.name, separator)
        resource_path = token
        is_id_resource = False
        if len(token) > len(id_suffix) and token.endswith(id_suffix):
            token = token.removesuffix(id_suffix)
            resource_path = f"{token}/{ID_PLACEHOLDER}"
            is_id_resource = True
        elif resource.gap is not None:
            gaps[token] = tuple(resource.gap.split("/"))
            resource_path = f"{token}/{resource.gap}"

        for operation in resource.operations:
            if not is_operation(operation.name, operation.handler):
                logger.debug(
                    "Skipping %s.%s: not an operation", resource.name, operation.name
                )
                continue
            verb, operation_path = _operation_route(operation.name, is_id_resource, separator)
            if not resource_path:
                operation_path = operation_path.removeprefix("/")
            key = RouteKey(verb, f"/{resource_path}{operation_path}")
            routes[key] = operation.handler

    return RouteTable(routes), MappingProxyType(gaps)


def _operation_route(name: str, is_id_resource: bool, separator: str) -> tuple[Verb, str]:
    """The verb and the path suffix (``""`` or ``"/..."``) for one operation."""
    converted = convert_name(name, separator)
    words = converted.split(separator)

    verb = _VERB_WORDS.get(words[0])
    if verb is not None:
        words = words[1:]
    else:
        verb = Verb.GET

    # A lone "id" word (with or without a verb) is a path word, not an id
    has_id = not is_id_resource and len(words) >= 2 and words[-1] == "id"
    if has_id:
        words = words[:-1]

    path = f"/{separator.join(words)}" if words else ""
    if has_id:
        path += f"/{ID_PLACEHOLDER}"
    return verb, path


def is_operation(name: str, handler: Any) -> bool:
    """Whether *handler* has the shape of a resource operation.

    The name must start with ``A``-``Z``. The handler must take exactly one
    positional parameter, unannotated or annotated as ``Context``, and
    must not declare a return type other than ``None``.
    """
    if not name or not "A" <= name[0] <= "Z":
        return False
    if not callable(handler):
        return False
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return False

    params = list(signature.parameters.values())
    if len(params) != 1:
        return False
    param = params[0]
    if param.kind not in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
        return False
    if param.annotation is not param.empty and not _is_context_annotation(param.annotation):
        return False
    return signature.return_annotation in (signature.empty, None, "None")


def _is_context_annotation(annotation: Any) -> bool:
    from perch.context import Context

    if isinstance(annotation, str):
        return annotation.rpartition(".")[2] == "Context"
    return isinstance(annotation, type) and issubclass(annotation, Context)
