"""Router — resource registration, compilation and matching.

Resources are registered during setup and compiled into an immutable
route table and gap table when the app freezes.
"""

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from perch.config import AppConfig
from perch.errors import NotFound
from perch.routing.compiler import RouteTable, compile_routes
from perch.routing.resolver import resolve_path
from perch.routing.route import ResolvedRoute, ResourceDescriptor


class Router:
    """Compiled router over convention-named resources.

    Usage::

        router = Router(AppConfig(base_path="/api/"))
        router.add(describe(UsersId()))
        router.compile()
        handler, route = router.match("GET", "/api/users/42/image_url")
    """

    __slots__ = ("_compiled", "_config", "_gaps", "_resources", "_routes")

    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()
        self._resources: list[ResourceDescriptor] = []
        self._routes = RouteTable()
        self._gaps: Mapping[str, tuple[str, ...]] = MappingProxyType({})
        self._compiled = False

    def add(self, resource: ResourceDescriptor) -> None:
        """Add a resource to the router. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add resources after compilation."
            raise RuntimeError(msg)
        self._resources.append(resource)

    def compile(self) -> None:
        """Build the route and gap tables. No more resources can be added."""
        if self._compiled:
            return
        self._routes, self._gaps = compile_routes(
            self._resources, separator=self._config.word_separator
        )
        self._compiled = True

    @property
    def routes(self) -> RouteTable:
        """The compiled route table (empty before compile())."""
        return self._routes

    @property
    def gaps(self) -> Mapping[str, tuple[str, ...]]:
        """The compiled gap table (empty before compile())."""
        return self._gaps

    def resolve(self, method: str, path: str) -> ResolvedRoute:
        """Resolve an absolute request path.

        Raises ``NotFound`` if *path* is outside the base path.
        """
        base_path = self._config.base_path
        if not path.startswith(base_path):
            raise NotFound(status=self._config.not_found_status)
        return resolve_path(
            method,
            path[len(base_path) :],
            self._gaps,
            allow_integer_gap=self._config.allow_integer_gap,
        )

    def match(self, method: str, path: str) -> tuple[Callable[..., Any], ResolvedRoute]:
        """Resolve *path* and look up its handler.

        Raises ``NotFound`` if no route matches.
        """
        route = self.resolve(method, path)
        handler = self._routes.get(route.key)
        if handler is None:
            raise NotFound(status=self._config.not_found_status)
        return handler, route

    def handled_paths(self, with_base_path: bool = False) -> str:
        """Sorted, newline-joined ``"VERB /template"`` lines for every route."""
        base_path = self._config.base_path if with_base_path else ""
        return self._routes.handled_paths(base_path)
