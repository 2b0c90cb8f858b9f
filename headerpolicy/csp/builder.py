"""Content-Security-Policy assembly."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, TypeVar

import structlog

from headerpolicy.csp.directives import (
    BaseUriDirectiveBuilder,
    BlockAllMixedContentDirectiveBuilder,
    ConnectSourceDirectiveBuilder,
    CspDirectiveBuilder,
    CustomDirective,
    DefaultSourceDirectiveBuilder,
    FontSourceDirectiveBuilder,
    FormActionDirectiveBuilder,
    FrameAncestorsDirectiveBuilder,
    FrameSourceDirectiveBuilder,
    ImageSourceDirectiveBuilder,
    ManifestSourceDirectiveBuilder,
    MediaSourceDirectiveBuilder,
    ObjectSourceDirectiveBuilder,
    ReportToDirectiveBuilder,
    ReportUriDirectiveBuilder,
    ScriptSourceDirectiveBuilder,
    StyleSourceDirectiveBuilder,
    UpgradeInsecureRequestsDirectiveBuilder,
    WorkerSourceDirectiveBuilder,
)

logger = structlog.get_logger()

_D = TypeVar("_D", bound=CspDirectiveBuilder)

DIRECTIVE_SEPARATOR = "; "


class CspBuilder:
    """Registry of directive builders keyed by directive name.

    Each ``add_*`` factory creates a fresh builder, registers it and returns
    it for further configuration::

        csp = CspBuilder()
        csp.add_default_src().add_self()
        csp.add_img_src().add_any()
        csp.build()  # "default-src 'self'; img-src *"

    Calling a factory for a directive that is already registered discards
    the earlier builder. The directive keeps the position of its first
    registration in the output.
    """

    def __init__(self) -> None:
        self._directives: dict[str, CspDirectiveBuilder] = {}

    @property
    def directives(self) -> Mapping[str, CspDirectiveBuilder]:
        return MappingProxyType(self._directives)

    def _add_directive(self, directive: _D) -> _D:
        if directive.directive in self._directives:
            logger.debug("csp_directive_replaced", directive=directive.directive)
        self._directives[directive.directive] = directive
        return directive

    def add_default_src(self) -> DefaultSourceDirectiveBuilder:
        """``default-src``: fallback for the other fetch directives."""
        return self._add_directive(DefaultSourceDirectiveBuilder())

    def add_connect_src(self) -> ConnectSourceDirectiveBuilder:
        return self._add_directive(ConnectSourceDirectiveBuilder())

    def add_font_src(self) -> FontSourceDirectiveBuilder:
        return self._add_directive(FontSourceDirectiveBuilder())

    def add_object_src(self) -> ObjectSourceDirectiveBuilder:
        return self._add_directive(ObjectSourceDirectiveBuilder())

    def add_form_action(self) -> FormActionDirectiveBuilder:
        return self._add_directive(FormActionDirectiveBuilder())

    def add_img_src(self) -> ImageSourceDirectiveBuilder:
        return self._add_directive(ImageSourceDirectiveBuilder())

    def add_script_src(self) -> ScriptSourceDirectiveBuilder:
        return self._add_directive(ScriptSourceDirectiveBuilder())

    def add_style_src(self) -> StyleSourceDirectiveBuilder:
        return self._add_directive(StyleSourceDirectiveBuilder())

    def add_media_src(self) -> MediaSourceDirectiveBuilder:
        return self._add_directive(MediaSourceDirectiveBuilder())

    def add_frame_ancestors(self) -> FrameAncestorsDirectiveBuilder:
        """``frame-ancestors``: who may embed the page. ``'none'`` matches ``X-Frame-Options: DENY``."""
        return self._add_directive(FrameAncestorsDirectiveBuilder())

    def add_frame_src(self) -> FrameSourceDirectiveBuilder:
        return self._add_directive(FrameSourceDirectiveBuilder())

    def add_worker_src(self) -> WorkerSourceDirectiveBuilder:
        return self._add_directive(WorkerSourceDirectiveBuilder())

    def add_manifest_src(self) -> ManifestSourceDirectiveBuilder:
        return self._add_directive(ManifestSourceDirectiveBuilder())

    def add_base_uri(self) -> BaseUriDirectiveBuilder:
        return self._add_directive(BaseUriDirectiveBuilder())

    def add_upgrade_insecure_requests(self) -> UpgradeInsecureRequestsDirectiveBuilder:
        return self._add_directive(UpgradeInsecureRequestsDirectiveBuilder())

    def add_block_all_mixed_content(self) -> BlockAllMixedContentDirectiveBuilder:
        return self._add_directive(BlockAllMixedContentDirectiveBuilder())

    def add_report_uri(self) -> ReportUriDirectiveBuilder:
        return self._add_directive(ReportUriDirectiveBuilder())

    def add_report_to(self) -> ReportToDirectiveBuilder:
        return self._add_directive(ReportToDirectiveBuilder())

    def add_custom_directive(self, directive: str, value: str | None = None) -> CustomDirective:
        """Register a directive that has no dedicated builder.

        ``value`` is emitted verbatim after the name. A custom directive may
        replace a well-known one registered under the same name.
        """
        return self._add_directive(CustomDirective(directive, value))

    def build(self) -> str:
        """Serialize all directives, skipping those with nothing to emit."""
        fragments = (d.build() for d in self._directives.values())
        return DIRECTIVE_SEPARATOR.join(f for f in fragments if f)
