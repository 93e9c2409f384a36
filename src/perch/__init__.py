"""perch — convention-based REST dispatch for ASGI.

Resources are plain classes; their method names become routes, and
every operation reads its parameters through one typed ``Finder`` over
query, form and JSON body values.

Basic usage::

    from perch import App

    app = App()

    @app.resource
    class UsersId:
        def ImageUrl(self, ctx):          # GET /users/:id/image_url
            ctx.data = f"/images/{ctx.id}.png"

        def PostName(self, ctx):          # POST /users/:id/name
            ctx.data = ctx.finder.require_string_len(2, 32, "name")

    app.run()

Every response is ``{"data": ..., "error": ...}``.
"""

__version__ = "0.1.0-dev"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "FindError",
    "Finder",
    "Found",
    "HTTPError",
    "InternalError",
    "NoJsonBody",
    "NotFound",
    "PerchError",
    "Request",
    "RequestError",
    "Response",
    "allow_cors",
    "convert_name",
    "get_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name in ("Context", "get_context"):
        from perch import context as _ctx

        return getattr(_ctx, name)

    if name in ("FindError", "Finder", "Found"):
        from perch import finder as _finder

        return getattr(_finder, name)

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name == "allow_cors":
        from perch.cors import allow_cors

        return allow_cors

    if name == "convert_name":
        from perch.naming import convert_name

        return convert_name

    if name in (
        "ConfigurationError",
        "HTTPError",
        "InternalError",
        "NoJsonBody",
        "NotFound",
        "PerchError",
        "RequestError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
