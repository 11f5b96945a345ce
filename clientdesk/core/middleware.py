# clientdesk/core/middleware.py
"""
HTTP method override for HTML forms.

Browsers only submit GET and POST, so the edit and delete forms post to
/clients/{id}?_method=PUT (or DELETE). The override is read from the query
string only; the request body is never touched.
"""
from starlette.datastructures import QueryParams
from starlette.types import ASGIApp, Receive, Scope, Send

OVERRIDE_PARAM = "_method"
OVERRIDABLE_METHODS = {"PUT", "PATCH", "DELETE"}


class MethodOverrideMiddleware:
    def __init__(self, app: ASGIApp, param: str = OVERRIDE_PARAM):
        self.app = app
        self.param = param

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] == "POST":
            params = QueryParams(scope.get("query_string", b""))
            override = (params.get(self.param) or "").upper()
            if override in OVERRIDABLE_METHODS:
                scope = dict(scope)
                scope["method"] = override
        await self.app(scope, receive, send)
