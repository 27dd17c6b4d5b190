from typing import List, Optional


class ProtectionError(Exception):
    """Base class for resource protection errors."""


class PolicyViolation(ProtectionError):
    """Raised when a destructive removal policy is requested without override."""

    def __init__(self, policy, path: str, reason: Optional[str] = None):
        self.policy = policy
        self.path = path
        self.reason = reason or "destructive removal policy requires allow_destroy"
        super().__init__(f"Refusing {policy} on {path}: {self.reason}")


class NamingError(ProtectionError):
    """Raised when a physical name cannot be derived from the naming context."""

    def __init__(self, path: str, missing: List[str]):
        self.path = path
        self.missing = missing
        super().__init__(
            f"Cannot generate a physical name for {path}: "
            f"{' and '.join(missing)} unresolved or missing"
        )
