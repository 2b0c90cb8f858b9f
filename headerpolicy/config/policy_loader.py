"""Build named header policies from the YAML policies file."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import structlog
import yaml

from headerpolicy.config.loader import get_settings
from headerpolicy.csp.builder import CspBuilder
from headerpolicy.csp.directives import (
    CspDirectiveBuilder,
    ReportToDirectiveBuilder,
    ReportUriDirectiveBuilder,
    SourceListDirectiveBuilder,
)
from headerpolicy.csp.sources import parse_source
from headerpolicy.headers.options import SecurityHeaderOptions
from headerpolicy.headers.policies import DEFAULT_HSTS_MAX_AGE, HeaderPolicyCollection

logger = structlog.get_logger()

# Directive name -> CspBuilder factory
DIRECTIVE_FACTORIES: dict[str, Callable[[CspBuilder], CspDirectiveBuilder]] = {
    "default-src": CspBuilder.add_default_src,
    "connect-src": CspBuilder.add_connect_src,
    "font-src": CspBuilder.add_font_src,
    "object-src": CspBuilder.add_object_src,
    "form-action": CspBuilder.add_form_action,
    "img-src": CspBuilder.add_img_src,
    "script-src": CspBuilder.add_script_src,
    "style-src": CspBuilder.add_style_src,
    "media-src": CspBuilder.add_media_src,
    "frame-ancestors": CspBuilder.add_frame_ancestors,
    "frame-src": CspBuilder.add_frame_src,
    "worker-src": CspBuilder.add_worker_src,
    "manifest-src": CspBuilder.add_manifest_src,
    "base-uri": CspBuilder.add_base_uri,
    "upgrade-insecure-requests": CspBuilder.add_upgrade_insecure_requests,
    "block-all-mixed-content": CspBuilder.add_block_all_mixed_content,
    "report-uri": CspBuilder.add_report_uri,
    "report-to": CspBuilder.add_report_to,
}

# Cache loaded policies files, keyed by path
_raw_policies: dict[Path, dict] = {}


def _load_raw_policies(path: Path) -> dict:
    """Load a policies YAML file, caching after first load."""
    cached = _raw_policies.get(path)
    if cached is not None:
        return cached
    if not path.exists():
        logger.error("policies_file_not_found", path=str(path))
        raw: dict = {}
    else:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    _raw_policies[path] = raw
    return raw


def reset_policies_cache() -> None:
    """Reset the policies cache (for testing)."""
    _raw_policies.clear()


def _directive_tokens(name: str, value: Any) -> list[str] | None:
    """Normalise a directive value to a token list; None means "omit".

    A string is split on whitespace, so ``"'self' data:"`` equals ``["'self'", "data:"]``.
    """
    if value is False or value is None:
        return None
    if value is True:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, list):
        return [str(token) for token in value]
    raise ValueError(
        f"Directive {name!r} must be a list of sources, a space-separated string or true, "
        f"got {type(value).__name__}"
    )


def configure_csp(csp: CspBuilder, directives: dict[str, Any]) -> CspBuilder:
    """Register each directive from a ``{name: [tokens]}`` mapping on ``csp``.

    Known directives go through their factory and have their tokens
    classified by ``parse_source``. Unknown names become custom directives
    with the tokens joined verbatim.
    """
    for name, value in directives.items():
        tokens = _directive_tokens(name, value)
        if tokens is None:
            continue
        factory = DIRECTIVE_FACTORIES.get(name)
        if factory is None:
            csp.add_custom_directive(name, " ".join(tokens) or None)
            continue
        builder = factory(csp)
        if isinstance(builder, SourceListDirectiveBuilder):
            builder.add_source(*(parse_source(t) for t in tokens))
        elif isinstance(builder, ReportUriDirectiveBuilder):
            builder.add_uri(*tokens)
        elif isinstance(builder, ReportToDirectiveBuilder) and tokens:
            builder.set_group(tokens[0])
    return csp


def _mapping(policy_name: str, key: str, value: Any) -> dict:
    """Return ``value`` if it is a mapping; None counts as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Policy {policy_name!r}: {key!r} must be a mapping, got {type(value).__name__}")
    return value


def _header_names(policy_name: str, value: Any) -> list[str]:
    """``remove`` accepts one header name or a list of them."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"Policy {policy_name!r}: 'remove' must be a list of header names, got {type(value).__name__}")
    return [str(header) for header in value]


def build_policy(name: str, entry: Any, csp_report_only: bool = False) -> HeaderPolicyCollection:
    """Build a ``HeaderPolicyCollection`` from one policies-file entry."""
    if not isinstance(entry, dict):
        raise ValueError(f"Policy {name!r} must be a mapping, got {type(entry).__name__}")

    policy = HeaderPolicyCollection()
    for header, value in _mapping(name, "headers", entry.get("headers")).items():
        policy.add_custom_header(header, str(value))

    hsts = entry.get("strict_transport_security")
    if hsts:
        if not isinstance(hsts, dict):
            hsts = {}
        policy.add_strict_transport_security(
            max_age=int(hsts.get("max_age", DEFAULT_HSTS_MAX_AGE)),
            include_subdomains=bool(hsts.get("include_subdomains", False)),
            preload=bool(hsts.get("preload", False)),
        )

    csp = _mapping(name, "content_security_policy", entry.get("content_security_policy"))
    if csp:
        directives = _mapping(name, "directives", csp.get("directives"))
        report_only = bool(csp.get("report_only", csp_report_only))
        policy.add_content_security_policy(
            lambda builder: configure_csp(builder, directives),
            report_only=report_only,
        )

    for header in _header_names(name, entry.get("remove")):
        policy.remove_custom_header(header)
    return policy


def load_policy_options(path: str | Path | None = None) -> SecurityHeaderOptions:
    """Load every named policy and make the configured default policy the fallback."""
    settings = get_settings()
    raw = _load_raw_policies(Path(path or settings.policies_file))

    options = SecurityHeaderOptions()
    for name, entry in raw.items():
        options.add_policy(name, build_policy(name, entry, csp_report_only=settings.csp_report_only))

    default = options.get_policy(settings.default_policy)
    if default is None:
        logger.warning("default_policy_not_defined", policy=settings.default_policy)
    else:
        options.default_policy = default
    logger.info("policies_loaded", policies=options.policy_names, default_policy=settings.default_policy)
    return options
