"""Response header policies and named-policy selection."""

from headerpolicy.headers.options import PolicyNotFoundError, SecurityHeaderOptions
from headerpolicy.headers.policies import HeaderPolicyCollection

__all__ = ["HeaderPolicyCollection", "PolicyNotFoundError", "SecurityHeaderOptions"]
