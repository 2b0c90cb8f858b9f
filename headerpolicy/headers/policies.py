"""Header policies and the collection applied to each response."""

from __future__ import annotations

import abc
from typing import Callable, Iterator, MutableMapping

from headerpolicy.csp.builder import CspBuilder

CSP_HEADER = "Content-Security-Policy"
CSP_REPORT_ONLY_HEADER = "Content-Security-Policy-Report-Only"

DEFAULT_HSTS_MAX_AGE = 31536000  # one year


class HeaderPolicy(abc.ABC):
    """A single header to set on, or remove from, a response."""

    def __init__(self, header: str) -> None:
        self.header = header

    @property
    def key(self) -> str:
        return self.header.lower()

    @abc.abstractmethod
    def apply(self, headers: MutableMapping[str, str], is_https: bool = False) -> None:
        ...


class SetHeaderPolicy(HeaderPolicy):
    def __init__(self, header: str, value: str) -> None:
        super().__init__(header)
        self.value = value

    def apply(self, headers: MutableMapping[str, str], is_https: bool = False) -> None:
        headers[self.header] = self.value


class RemoveHeaderPolicy(HeaderPolicy):
    def apply(self, headers: MutableMapping[str, str], is_https: bool = False) -> None:
        if self.header in headers:
            del headers[self.header]


class StrictTransportSecurityPolicy(SetHeaderPolicy):
    """HSTS. Browsers ignore it over plain HTTP, so it is only sent on HTTPS."""

    def __init__(
        self,
        max_age: int = DEFAULT_HSTS_MAX_AGE,
        include_subdomains: bool = False,
        preload: bool = False,
    ) -> None:
        parts = [f"max-age={max_age}"]
        if include_subdomains:
            parts.append("includeSubDomains")
        if preload:
            parts.append("preload")
        super().__init__("Strict-Transport-Security", "; ".join(parts))

    def apply(self, headers: MutableMapping[str, str], is_https: bool = False) -> None:
        if is_https:
            super().apply(headers, is_https)


class ContentSecurityPolicyHeader(SetHeaderPolicy):
    """CSP built once from a configured ``CspBuilder``.

    The builder is serialized at construction and not retained; later
    changes to it are not reflected. An empty policy sets no header.
    """

    def __init__(self, builder: CspBuilder, report_only: bool = False) -> None:
        header = CSP_REPORT_ONLY_HEADER if report_only else CSP_HEADER
        super().__init__(header, builder.build())
        self.report_only = report_only

    @property
    def key(self) -> str:
        # Enforcing and report-only policies replace each other.
        return CSP_HEADER.lower()

    def apply(self, headers: MutableMapping[str, str], is_https: bool = False) -> None:
        if self.value:
            super().apply(headers, is_https)


class HeaderPolicyCollection:
    """Ordered set of header policies keyed by header name (last write wins).

    All ``add_*`` / ``remove_*`` methods return the collection so calls can
    be chained::

        policies = (
            HeaderPolicyCollection()
            .add_frame_options_deny()
            .add_content_security_policy(lambda csp: csp.add_default_src().add_self())
        )
    """

    def __init__(self) -> None:
        self._policies: dict[str, HeaderPolicy] = {}

    def __iter__(self) -> Iterator[HeaderPolicy]:
        return iter(self._policies.values())

    def __len__(self) -> int:
        return len(self._policies)

    def __contains__(self, header: object) -> bool:
        return isinstance(header, str) and header.lower() in self._policies

    def get(self, header: str) -> HeaderPolicy | None:
        return self._policies.get(header.lower())

    def add_policy(self, policy: HeaderPolicy) -> HeaderPolicyCollection:
        self._policies[policy.key] = policy
        return self

    def add_frame_options_deny(self) -> HeaderPolicyCollection:
        return self.add_policy(SetHeaderPolicy("X-Frame-Options", "DENY"))

    def add_frame_options_same_origin(self) -> HeaderPolicyCollection:
        return self.add_policy(SetHeaderPolicy("X-Frame-Options", "SAMEORIGIN"))

    def add_content_type_options_no_sniff(self) -> HeaderPolicyCollection:
        return self.add_policy(SetHeaderPolicy("X-Content-Type-Options", "nosniff"))

    def add_strict_transport_security(
        self,
        max_age: int = DEFAULT_HSTS_MAX_AGE,
        include_subdomains: bool = False,
        preload: bool = False,
    ) -> HeaderPolicyCollection:
        return self.add_policy(StrictTransportSecurityPolicy(max_age, include_subdomains, preload))

    def add_referrer_policy(self, value: str) -> HeaderPolicyCollection:
        return self.add_policy(SetHeaderPolicy("Referrer-Policy", value))

    def add_cross_origin_opener_policy(self, value: str) -> HeaderPolicyCollection:
        return self.add_policy(SetHeaderPolicy("Cross-Origin-Opener-Policy", value))

    def add_content_security_policy(
        self,
        configure: Callable[[CspBuilder], object],
        report_only: bool = False,
    ) -> HeaderPolicyCollection:
        """Configure a fresh ``CspBuilder`` with ``configure`` and add its output."""
        builder = CspBuilder()
        configure(builder)
        return self.add_policy(ContentSecurityPolicyHeader(builder, report_only=report_only))

    def add_custom_header(self, header: str, value: str) -> HeaderPolicyCollection:
        return self.add_policy(SetHeaderPolicy(header, value))

    def remove_custom_header(self, header: str) -> HeaderPolicyCollection:
        return self.add_policy(RemoveHeaderPolicy(header))

    def remove_server_header(self) -> HeaderPolicyCollection:
        return self.remove_custom_header("Server")

    def add_default_security_headers(self) -> HeaderPolicyCollection:
        """Add a conservative baseline suitable for most HTML and API responses."""
        return (
            self.add_frame_options_deny()
            .add_content_type_options_no_sniff()
            .add_strict_transport_security(include_subdomains=True)
            .add_referrer_policy("strict-origin-when-cross-origin")
            .add_content_security_policy(_default_csp)
            .add_cross_origin_opener_policy("same-origin")
            .remove_server_header()
        )

    def apply(self, headers: MutableMapping[str, str], is_https: bool = False) -> None:
        for policy in self._policies.values():
            policy.apply(headers, is_https)

    def header_values(self, is_https: bool = False) -> dict[str, str]:
        """Headers this collection would set on an empty response."""
        headers: dict[str, str] = {}
        self.apply(headers, is_https)
        return headers


def _default_csp(csp: CspBuilder) -> None:
    csp.add_object_src().add_none()
    csp.add_form_action().add_self()
    csp.add_frame_ancestors().add_none()
