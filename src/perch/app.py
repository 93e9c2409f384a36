"""The perch application.

Resources and hooks are registered while the app is being set up. The
first request, lifespan startup or route listing compiles the route
table, after which the app can no longer be changed.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch._internal.types import Hook
from perch.config import AppConfig
from perch.routing.compiler import RouteTable
from perch.routing.resources import describe
from perch.routing.route import ResourceDescriptor
from perch.routing.router import Router
from perch.server.handler import handle_request

logger = logging.getLogger("perch.server")


class App:
    """The perch application.

    Usage::

        app = App(AppConfig(base_path="/api/"))

        @app.resource
        class UsersId:
            def ImageUrl(self, ctx):
                ctx.data = f"/images/{ctx.id}.png"

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the route table, even when several ASGI workers
        call ``__call__()`` concurrently on the first request.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_resources",
        # Compiled state (populated by _freeze)
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._resources: list[ResourceDescriptor] = []
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._router: Router | None = None

    # -- Resource registration --

    def resource(
        self,
        cls: type | None = None,
        *,
        name: str | None = None,
        gap: str | None = None,
    ) -> Any:
        """Register a resource class via decorator.

        Usable bare or with arguments::

            @app.resource
            class Users: ...

            @app.resource(gap=":username")
            class Users: ...

        The class is instantiated once, with no arguments, at registration.
        """

        def decorator(resource_cls: type) -> type:
            self.add_resource(resource_cls, name=name, gap=gap)
            return resource_cls

        if cls is not None:
            return decorator(cls)
        return decorator

    def add_resource(
        self,
        resource: Any,
        *,
        name: str | None = None,
        gap: str | None = None,
    ) -> None:
        """Register a resource class, instance or ``ResourceDescriptor``."""
        self._check_not_frozen()
        if isinstance(resource, ResourceDescriptor):
            self._resources.append(resource)
        else:
            self._resources.append(describe(resource, name=name, gap=gap))

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Decorator: run *func* (sync or async) at lifespan startup.

        Startup hooks run in the order they were added. If one raises,
        startup fails and the server does not start serving.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Decorator: run *func* (sync or async) at lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def routes(self) -> RouteTable:
        """The compiled route table. Freezes the app."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router.routes

    def handled_paths(self, with_base_path: bool = False) -> str:
        """Every handled ``"VERB /path"``, sorted and newline-joined.

        Compare the output between builds to catch unintended API changes.
        """
        self._ensure_frozen()
        assert self._router is not None
        return self._router.handled_paths(with_base_path)

    # -- Serving --

    def run(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        app_path: str | None = None,
    ) -> None:
        """Compile the app and serve it with pounce.

        Args:
            host: Override bind host.
            port: Override bind port.
            app_path: ``"module:attribute"`` import string, used by
                the server to reload the app in debug mode.
        """
        self._ensure_frozen()

        from perch.server.dev import run_dev_server

        run_dev_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
            app_path=app_path,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()

        assert self._router is not None

        await handle_request(scope, receive, send, router=self._router, config=self.config)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Answer lifespan startup and shutdown, running the hooks for each."""
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the route table. MUST only be called while holding _freeze_lock."""
        router = Router(self.config)
        for resource in self._resources:
            router.add(resource)
        router.compile()
        logger.debug("Compiled %d routes from %d resources", len(router.routes), len(self._resources))
        self._router = router
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "The app is already compiled; resources and hooks must be "
                "registered before the first request or app.run()."
            )
            raise RuntimeError(msg)
