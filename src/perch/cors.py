"""Cross-origin resource sharing.

``allow_cors`` is a ready-made ``AppConfig.handle_cors`` hook::

    app = App(AppConfig(handle_cors=allow_cors))
"""

from perch.http.headers import MutableHeaders
from perch.http.request import Request


def allow_cors(request: Request, headers: MutableHeaders) -> bool:
    """Allow every origin. Preflight ``OPTIONS`` requests end with headers only."""
    headers.add("Access-Control-Allow-Origin", "*")
    return request.method != "OPTIONS"
