"""Tests for security headers middleware."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from headerpolicy.config.policy_loader import load_policy_options
from headerpolicy.headers.options import PolicyNotFoundError, SecurityHeaderOptions
from headerpolicy.headers.policies import HeaderPolicyCollection
from headerpolicy.middleware.security_headers import SecurityHeadersMiddleware, use_security_headers


async def _home(request: Request) -> PlainTextResponse:
    return PlainTextResponse("ok", headers={"server": "uvicorn", "x-powered-by": "Starlette"})


async def _docs(request: Request) -> PlainTextResponse:
    request.state.security_headers_policy = "docs"
    return PlainTextResponse("docs")


async def _unknown(request: Request) -> PlainTextResponse:
    request.state.security_headers_policy = "nonexistent"
    return PlainTextResponse("unknown")


async def _error(request: Request) -> PlainTextResponse:
    return PlainTextResponse("Internal Error", status_code=500)


ROUTES = [
    Route("/", _home),
    Route("/docs", _docs),
    Route("/unknown", _unknown),
    Route("/error", _error),
]


def _make_app(**middleware_kwargs) -> Starlette:
    return Starlette(
        routes=ROUTES,
        middleware=[Middleware(SecurityHeadersMiddleware, **middleware_kwargs)],
    )


def _options() -> SecurityHeaderOptions:
    options = SecurityHeaderOptions()
    options.add_policy(
        "site",
        lambda p: p.add_frame_options_same_origin().add_content_security_policy(
            lambda csp: csp.add_default_src().add_self()
        ),
    )
    options.add_policy(
        "docs",
        lambda p: p.add_frame_options_deny().add_content_security_policy(
            lambda csp: csp.add_script_src().add_self().add_unsafe_inline()
        ),
    )
    return options


# ── Policy selection ─────────────────────────────────────────────────────


class TestPolicySelection:
    def test_explicit_collection(self):
        policies = (
            HeaderPolicyCollection()
            .add_content_security_policy(lambda csp: csp.add_default_src().add_self())
            .add_custom_header("X-Custom", "1")
        )
        with TestClient(_make_app(policies=policies)) as client:
            response = client.get("/")
        assert response.headers["content-security-policy"] == "default-src 'self'"
        assert response.headers["x-custom"] == "1"

    def test_configure_callback(self):
        with TestClient(_make_app(configure=lambda p: p.add_frame_options_deny())) as client:
            response = client.get("/")
        assert response.headers["x-frame-options"] == "DENY"
        assert "content-security-policy" not in response.headers

    def test_default_security_headers_without_arguments(self):
        with TestClient(_make_app()) as client:
            response = client.get("/")
        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["referrer-policy"] == "strict-origin-when-cross-origin"
        assert response.headers["cross-origin-opener-policy"] == "same-origin"
        assert response.headers["content-security-policy"] == (
            "object-src 'none'; form-action 'self'; frame-ancestors 'none'"
        )

    def test_options_default_policy(self):
        options = _options()
        options.default_policy = options.get_policy("site")
        with TestClient(_make_app(options=options)) as client:
            response = client.get("/")
        assert response.headers["x-frame-options"] == "SAMEORIGIN"

    def test_named_policy(self):
        with TestClient(_make_app(options=_options(), policy_name="site")) as client:
            response = client.get("/")
        assert response.headers["content-security-policy"] == "default-src 'self'"

    def test_missing_named_policy_raises(self):
        with pytest.raises(PolicyNotFoundError):
            SecurityHeadersMiddleware(_make_app(), options=_options(), policy_name="missing")

    def test_empty_policy_name_raises(self):
        with pytest.raises(ValueError, match="must not be empty"):
            SecurityHeadersMiddleware(_make_app(), options=_options(), policy_name="")

    def test_empty_policy_name_does_not_fall_back_to_default(self):
        options = _options()
        options.default_policy = options.get_policy("site")
        with pytest.raises(ValueError):
            SecurityHeadersMiddleware(_make_app(), options=options, policy_name="")

    def test_named_policy_exposed(self):
        options = _options()
        middleware = SecurityHeadersMiddleware(_make_app(), options=options, policy_name="docs")
        assert middleware.policies is options.get_policy("docs")

    def test_use_security_headers_validates_name_eagerly(self):
        app = Starlette(routes=ROUTES)
        with pytest.raises(PolicyNotFoundError):
            use_security_headers(app, options=_options(), policy_name="missing")

    def test_use_security_headers(self):
        app = use_security_headers(Starlette(routes=ROUTES), options=_options(), policy_name="site")
        with TestClient(app) as client:
            response = client.get("/")
        assert response.headers["x-frame-options"] == "SAMEORIGIN"


# ── Per-endpoint override ────────────────────────────────────────────────


class TestEndpointOverride:
    def test_endpoint_selects_named_policy(self):
        with TestClient(_make_app(options=_options(), policy_name="site")) as client:
            home = client.get("/")
            docs = client.get("/docs")
        assert home.headers["content-security-policy"] == "default-src 'self'"
        assert docs.headers["content-security-policy"] == "script-src 'self' 'unsafe-inline'"
        assert docs.headers["x-frame-options"] == "DENY"

    def test_endpoint_unknown_policy_raises(self):
        with TestClient(_make_app(options=_options())) as client:
            with pytest.raises(PolicyNotFoundError):
                client.get("/unknown")


# ── Transport-dependent headers ──────────────────────────────────────────


class TestStrictTransportSecurity:
    def test_not_sent_over_http(self):
        with TestClient(_make_app()) as client:
            response = client.get("/")
        assert "strict-transport-security" not in response.headers

    def test_sent_over_https(self):
        with TestClient(_make_app(), base_url="https://testserver") as client:
            response = client.get("/")
        assert response.headers["strict-transport-security"] == "max-age=31536000; includeSubDomains"


# ── Header stripping and error responses ─────────────────────────────────


class TestResponses:
    def test_strips_server_header(self):
        with TestClient(_make_app()) as client:
            response = client.get("/")
        assert "server" not in response.headers
        # not removed by the default policy
        assert response.headers["x-powered-by"] == "Starlette"

    def test_preset_strips_server_and_powered_by(self):
        with TestClient(_make_app(options=load_policy_options(), policy_name="strict")) as client:
            response = client.get("/")
        assert "server" not in response.headers
        assert "x-powered-by" not in response.headers
        assert response.headers["referrer-policy"] == "no-referrer"

    def test_applied_to_500_responses(self):
        with TestClient(_make_app()) as client:
            response = client.get("/error")
        assert response.status_code == 500
        assert response.headers["x-content-type-options"] == "nosniff"

    def test_applied_to_404_responses(self):
        with TestClient(_make_app()) as client:
            response = client.get("/does-not-exist")
        assert response.status_code == 404
        assert response.headers["x-frame-options"] == "DENY"

    def test_body_untouched(self):
        with TestClient(_make_app()) as client:
            response = client.get("/")
        assert response.text == "ok"
