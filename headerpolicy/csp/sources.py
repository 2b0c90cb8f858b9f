"""Source tokens that may appear in a CSP source-list directive.

Each kind knows its wire form via ``format()``. Nothing here validates
host or scheme syntax: whatever the caller passes is emitted unchanged.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

# Hash algorithms recognised when classifying quoted tokens
HASH_ALGORITHMS = frozenset({"sha256", "sha384", "sha512"})


class Keyword(str, enum.Enum):
    SELF = "self"
    NONE = "none"
    UNSAFE_INLINE = "unsafe-inline"
    UNSAFE_EVAL = "unsafe-eval"
    STRICT_DYNAMIC = "strict-dynamic"
    UNSAFE_HASHES = "unsafe-hashes"
    REPORT_SAMPLE = "report-sample"

    def format(self) -> str:
        return f"'{self.value}'"


@dataclass(frozen=True)
class SchemeSource:
    """A scheme source such as ``https:`` or ``data:``."""

    scheme: str

    def format(self) -> str:
        return self.scheme


@dataclass(frozen=True)
class HostSource:
    """A host or origin, optionally with wildcard subdomain or port (``*.example.com:*``)."""

    host: str

    def format(self) -> str:
        return self.host


@dataclass(frozen=True)
class NonceSource:
    nonce: str

    def format(self) -> str:
        return f"'nonce-{self.nonce}'"


@dataclass(frozen=True)
class HashSource:
    algorithm: str
    digest: str

    def format(self) -> str:
        return f"'{self.algorithm}-{self.digest}'"


@dataclass(frozen=True)
class RawSource:
    """Verbatim token, no quoting applied."""

    value: str

    def format(self) -> str:
        return self.value


CspSource = Union[Keyword, SchemeSource, HostSource, NonceSource, HashSource, RawSource]


def parse_source(token: str) -> CspSource:
    """Classify a header-syntax token into a source value.

    The result always formats back to the original token:

        >>> parse_source("'self'")
        <Keyword.SELF: 'self'>
        >>> parse_source("'sha256-abc='")
        HashSource(algorithm='sha256', digest='abc=')
        >>> parse_source("https:")
        SchemeSource(scheme='https:')
    """
    if len(token) >= 2 and token.startswith("'") and token.endswith("'"):
        inner = token[1:-1]
        try:
            return Keyword(inner)
        except ValueError:
            pass
        prefix, sep, rest = inner.partition("-")
        if sep and rest:
            if prefix == "nonce":
                return NonceSource(rest)
            if prefix in HASH_ALGORITHMS:
                return HashSource(prefix, rest)
        return RawSource(token)
    if token.endswith(":") and "/" not in token:
        return SchemeSource(token)
    return HostSource(token)
