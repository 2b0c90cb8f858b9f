"""Security headers injection middleware."""

from __future__ import annotations

from typing import Callable

import structlog
from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from headerpolicy.headers.options import SecurityHeaderOptions
from headerpolicy.headers.policies import HeaderPolicyCollection

logger = structlog.get_logger()

# request.state attribute an endpoint sets to pick a named policy for its response
POLICY_STATE_ATTR = "security_headers_policy"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Apply a header policy collection to every response.

    The policy is chosen once, at construction:
    - ``policies``: use the given collection
    - ``configure``: configure a fresh collection with the callback
    - ``policy_name``: look the name up in ``options`` (PolicyNotFoundError if
      missing, ValueError if empty)
    - none of these: ``options.default_policy``, else the default security headers

    An endpoint can override the choice for its own response by setting
    ``request.state.security_headers_policy`` to a name registered in ``options``.
    """

    def __init__(
        self,
        app: ASGIApp,
        policies: HeaderPolicyCollection | None = None,
        *,
        configure: Callable[[HeaderPolicyCollection], object] | None = None,
        policy_name: str | None = None,
        options: SecurityHeaderOptions | None = None,
    ) -> None:
        super().__init__(app)
        self._options = options or SecurityHeaderOptions()
        if policies is not None:
            self._policies = policies
        elif configure is not None:
            self._policies = HeaderPolicyCollection()
            configure(self._policies)
        elif policy_name is not None:
            self._policies = self._options.require_policy(policy_name)
        else:
            self._policies = self._options.resolve()
        logger.info(
            "security_headers_configured",
            policy=policy_name or "default",
            headers=[p.header for p in self._policies],
        )

    @property
    def policies(self) -> HeaderPolicyCollection:
        return self._policies

    def _select_policy(self, request: Request) -> HeaderPolicyCollection:
        name = getattr(request.state, POLICY_STATE_ATTR, None)
        if not name:
            return self._policies
        return self._options.require_policy(name)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        policies = self._select_policy(request)
        policies.apply(response.headers, is_https=request.url.scheme == "https")
        return response


def use_security_headers(
    app: Starlette,
    policies: HeaderPolicyCollection | None = None,
    *,
    configure: Callable[[HeaderPolicyCollection], object] | None = None,
    policy_name: str | None = None,
    options: SecurityHeaderOptions | None = None,
) -> Starlette:
    """Add ``SecurityHeadersMiddleware`` to ``app`` and return the app.

    A named policy is validated here, so a missing name fails at startup
    rather than on the first request.
    """
    if policy_name is not None:
        (options or SecurityHeaderOptions()).require_policy(policy_name)
    app.add_middleware(
        SecurityHeadersMiddleware,
        policies=policies,
        configure=configure,
        policy_name=policy_name,
        options=options,
    )
    return app
