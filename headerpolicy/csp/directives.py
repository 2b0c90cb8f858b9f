"""One builder per CSP directive.

Source-list builders accumulate source values through fluent ``add_*``
calls and serialize to ``"<name> <source> <source>"``. A source-list
builder with no sources serializes to ``""`` so the policy builder drops
it. Boolean directives always serialize to their bare name.

Only the source kinds a directive accepts are offered on its builder:
``frame-ancestors`` has no ``add_unsafe_inline()``, ``report-uri`` takes
plain URIs rather than source values.
"""

from __future__ import annotations

import abc
from typing import TypeVar

from headerpolicy.csp.sources import (
    CspSource,
    HashSource,
    HostSource,
    Keyword,
    NonceSource,
    RawSource,
    SchemeSource,
)

_B = TypeVar("_B", bound="SourceListDirectiveBuilder")


class CspDirectiveBuilder(abc.ABC):
    """Base contract shared by every directive builder."""

    directive_name: str = ""

    @property
    def directive(self) -> str:
        """The directive name, used as the registry key."""
        return self.directive_name

    @abc.abstractmethod
    def build(self) -> str:
        """Serialize the directive, or return ``""`` to have it omitted."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.build()!r})"


class SourceListDirectiveBuilder(CspDirectiveBuilder):
    """A directive whose value is a space-separated source list."""

    def __init__(self) -> None:
        self._values: list[CspSource] = []

    @property
    def values(self) -> tuple[CspSource, ...]:
        return tuple(self._values)

    def add_source(self: _B, *sources: CspSource | str) -> _B:
        """Append sources in order. Plain strings are emitted verbatim."""
        for source in sources:
            if isinstance(source, str) and not isinstance(source, Keyword):
                source = RawSource(source)
            self._values.append(source)
        return self

    def add_self(self: _B) -> _B:
        return self.add_source(Keyword.SELF)

    def add_none(self: _B) -> _B:
        return self.add_source(Keyword.NONE)

    def add_host(self: _B, host: str) -> _B:
        """Allow a host or origin, e.g. ``https://cdn.example.com`` or ``*.example.com:*``."""
        return self.add_source(HostSource(host))

    def add_scheme(self: _B, scheme: str) -> _B:
        return self.add_source(SchemeSource(scheme))

    def add_custom_source(self: _B, source: str) -> _B:
        return self.add_source(RawSource(source))

    def build(self) -> str:
        if not self._values:
            return ""
        return f"{self.directive_name} {' '.join(v.format() for v in self._values)}"


class FetchDirectiveBuilder(SourceListDirectiveBuilder):
    """Fetch directives additionally accept the wildcard host and common schemes."""

    def add_any(self: _B) -> _B:
        return self.add_source(HostSource("*"))

    def add_blob(self: _B) -> _B:
        return self.add_source(SchemeSource("blob:"))

    def add_data(self: _B) -> _B:
        return self.add_source(SchemeSource("data:"))

    def add_https(self: _B) -> _B:
        return self.add_source(SchemeSource("https:"))


class InlineSourceDirectiveBuilder(FetchDirectiveBuilder):
    """Fetch directives that can also permit specific inline scripts or styles."""

    def add_unsafe_inline(self: _B) -> _B:
        return self.add_source(Keyword.UNSAFE_INLINE)

    def add_unsafe_hashes(self: _B) -> _B:
        return self.add_source(Keyword.UNSAFE_HASHES)

    def add_report_sample(self: _B) -> _B:
        return self.add_source(Keyword.REPORT_SAMPLE)

    def add_nonce(self: _B, nonce: str) -> _B:
        """Allow elements carrying ``nonce="<nonce>"``; pass the base64 value only."""
        return self.add_source(NonceSource(nonce))

    def add_hash(self: _B, algorithm: str, digest: str) -> _B:
        """Allow an inline element by digest, e.g. ``add_hash("sha256", "q8x...=")``."""
        return self.add_source(HashSource(algorithm, digest))


class ScriptingSourceDirectiveBuilder(InlineSourceDirectiveBuilder):
    """Directives that govern script execution and so accept 'unsafe-eval'."""

    def add_unsafe_eval(self: _B) -> _B:
        return self.add_source(Keyword.UNSAFE_EVAL)


class DefaultSourceDirectiveBuilder(ScriptingSourceDirectiveBuilder):
    """``default-src``: fallback for the other fetch directives."""

    directive_name = "default-src"


class ConnectSourceDirectiveBuilder(FetchDirectiveBuilder):
    """``connect-src``: fetch, XHR, WebSocket, EventSource and ``<a ping>`` targets."""

    directive_name = "connect-src"


class FontSourceDirectiveBuilder(FetchDirectiveBuilder):
    directive_name = "font-src"


class ObjectSourceDirectiveBuilder(FetchDirectiveBuilder):
    """``object-src``: ``<object>``, ``<embed>`` and ``<applet>``."""

    directive_name = "object-src"


class ImageSourceDirectiveBuilder(FetchDirectiveBuilder):
    directive_name = "img-src"


class MediaSourceDirectiveBuilder(FetchDirectiveBuilder):
    """``media-src``: ``<audio>`` and ``<video>``."""

    directive_name = "media-src"


class FrameSourceDirectiveBuilder(FetchDirectiveBuilder):
    """``frame-src``: nested browsing contexts such as ``<iframe>``."""

    directive_name = "frame-src"


class WorkerSourceDirectiveBuilder(FetchDirectiveBuilder):
    directive_name = "worker-src"


class ManifestSourceDirectiveBuilder(FetchDirectiveBuilder):
    directive_name = "manifest-src"


class ScriptSourceDirectiveBuilder(ScriptingSourceDirectiveBuilder):
    directive_name = "script-src"

    def add_strict_dynamic(self: _B) -> _B:
        return self.add_source(Keyword.STRICT_DYNAMIC)


class StyleSourceDirectiveBuilder(InlineSourceDirectiveBuilder):
    directive_name = "style-src"


class FormActionDirectiveBuilder(SourceListDirectiveBuilder):
    """``form-action``: URLs usable as form submission targets."""

    directive_name = "form-action"


class FrameAncestorsDirectiveBuilder(SourceListDirectiveBuilder):
    """``frame-ancestors``: parents allowed to embed the page.

    ``add_none()`` here is the CSP equivalent of ``X-Frame-Options: DENY``.
    """

    directive_name = "frame-ancestors"


class BaseUriDirectiveBuilder(SourceListDirectiveBuilder):
    directive_name = "base-uri"


class _BooleanDirectiveBuilder(CspDirectiveBuilder):
    """A directive with no value; always serialized as its bare name."""

    def build(self) -> str:
        return self.directive_name


class UpgradeInsecureRequestsDirectiveBuilder(_BooleanDirectiveBuilder):
    """Treat every insecure URL on the page as if it had been rewritten to HTTPS."""

    directive_name = "upgrade-insecure-requests"


class BlockAllMixedContentDirectiveBuilder(_BooleanDirectiveBuilder):
    directive_name = "block-all-mixed-content"


class ReportUriDirectiveBuilder(CspDirectiveBuilder):
    """``report-uri``: where violation reports are POSTed. URIs are emitted as given."""

    directive_name = "report-uri"

    def __init__(self) -> None:
        self._uris: list[str] = []

    @property
    def values(self) -> tuple[str, ...]:
        return tuple(self._uris)

    def add_uri(self, *uris: str) -> ReportUriDirectiveBuilder:
        self._uris.extend(uris)
        return self

    def build(self) -> str:
        if not self._uris:
            return ""
        return f"{self.directive_name} {' '.join(self._uris)}"


class ReportToDirectiveBuilder(CspDirectiveBuilder):
    """``report-to``: the Reporting API group name that receives violation reports."""

    directive_name = "report-to"

    def __init__(self) -> None:
        self._group = ""

    @property
    def group(self) -> str:
        return self._group

    def set_group(self, group: str) -> ReportToDirectiveBuilder:
        self._group = group
        return self

    def build(self) -> str:
        if not self._group:
            return ""
        return f"{self.directive_name} {self._group}"


class CustomDirective(CspDirectiveBuilder):
    """Escape hatch for directives without a dedicated builder.

    The name and value are emitted exactly as given: no quoting, no token
    classification and no omission of empty output. The caller is
    responsible for producing a valid fragment. Registering a custom
    directive under a well-known name replaces the built-in builder.
    """

    def __init__(self, directive: str, value: str | None = None) -> None:
        self.directive_name = directive
        self._value = value

    @property
    def value(self) -> str | None:
        return self._value

    def build(self) -> str:
        if not self._value:
            return self.directive_name
        return f"{self.directive_name} {self._value}"
