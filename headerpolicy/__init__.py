"""Security response headers with a declarative Content-Security-Policy builder."""

__version__ = "0.1.0"
