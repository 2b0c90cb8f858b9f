"""Shared test fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch):
    """Provide default settings for all tests."""
    monkeypatch.setenv("HEADERPOLICY_LOG_JSON", "false")
    monkeypatch.setenv("HEADERPOLICY_LOG_LEVEL", "debug")
    monkeypatch.delenv("HEADERPOLICY_POLICIES_FILE", raising=False)
    monkeypatch.delenv("HEADERPOLICY_DEFAULT_POLICY", raising=False)
    monkeypatch.delenv("HEADERPOLICY_CSP_REPORT_ONLY", raising=False)

    # Reset cached settings and policies
    import headerpolicy.config.loader as loader
    from headerpolicy.config.policy_loader import reset_policies_cache

    loader._settings = None
    reset_policies_cache()
    yield
    loader._settings = None
    reset_policies_cache()


@pytest.fixture
def policies_file(tmp_path):
    """Write a small policies YAML file and return its path."""
    path = tmp_path / "policies.yaml"
    path.write_text(
        "site:\n"
        "  headers:\n"
        "    x-frame-options: DENY\n"
        "  remove: [server]\n"
        "  content_security_policy:\n"
        "    directives:\n"
        "      default-src: [\"'self'\"]\n"
        "      img-src: [\"*\"]\n"
        "docs:\n"
        "  headers:\n"
        "    x-frame-options: SAMEORIGIN\n"
        "  content_security_policy:\n"
        "    report_only: true\n"
        "    directives:\n"
        "      script-src: [\"'self'\", \"'nonce-abc123'\"]\n"
    )
    return path
