"""Named header policies and default-policy fallback."""

from __future__ import annotations

from typing import Callable, Union

import structlog

from headerpolicy.headers.policies import HeaderPolicyCollection

logger = structlog.get_logger()

PolicySource = Union[HeaderPolicyCollection, Callable[[HeaderPolicyCollection], object]]


class PolicyNotFoundError(LookupError):
    """A named header policy was requested but never registered."""

    def __init__(self, policy_name: str) -> None:
        self.policy_name = policy_name
        super().__init__(
            f"Security header policy '{policy_name}' could not be found. "
            f"Register it with SecurityHeaderOptions.add_policy('{policy_name}', ...) "
            "or define it in the policies file"
        )


class SecurityHeaderOptions:
    """Application-wide header policies: one optional default plus named policies."""

    def __init__(self, default_policy: HeaderPolicyCollection | None = None) -> None:
        self.default_policy = default_policy
        self._policies: dict[str, HeaderPolicyCollection] = {}

    @property
    def policy_names(self) -> list[str]:
        return list(self._policies)

    def add_policy(self, name: str, policy: PolicySource) -> HeaderPolicyCollection:
        """Register ``policy`` under ``name``, replacing any earlier policy.

        ``policy`` is either a ready collection or a callback that configures
        a fresh one.
        """
        if not name:
            raise ValueError("Policy name must not be empty")
        if not isinstance(policy, HeaderPolicyCollection):
            collection = HeaderPolicyCollection()
            policy(collection)
            policy = collection
        self._policies[name] = policy
        return policy

    def set_default_policy(self, policy: PolicySource) -> HeaderPolicyCollection:
        if not isinstance(policy, HeaderPolicyCollection):
            collection = HeaderPolicyCollection()
            policy(collection)
            policy = collection
        self.default_policy = policy
        return policy

    def get_policy(self, name: str) -> HeaderPolicyCollection | None:
        return self._policies.get(name)

    def require_policy(self, name: str) -> HeaderPolicyCollection:
        if not name:
            raise ValueError("Policy name must not be empty")
        policy = self._policies.get(name)
        if policy is None:
            logger.error("security_headers_policy_not_found", policy=name, known=self.policy_names)
            raise PolicyNotFoundError(name)
        return policy

    def resolve(self, name: str | None = None) -> HeaderPolicyCollection:
        """Return the named policy, else the default policy, else the default security headers."""
        if name:
            return self.require_policy(name)
        if self.default_policy is not None:
            return self.default_policy
        return HeaderPolicyCollection().add_default_security_headers()
