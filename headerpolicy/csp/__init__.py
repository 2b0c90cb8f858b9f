"""Content-Security-Policy directive builders and policy assembly."""

from headerpolicy.csp.builder import CspBuilder
from headerpolicy.csp.directives import CspDirectiveBuilder, CustomDirective
from headerpolicy.csp.sources import Keyword, parse_source

__all__ = ["CspBuilder", "CspDirectiveBuilder", "CustomDirective", "Keyword", "parse_source"]
