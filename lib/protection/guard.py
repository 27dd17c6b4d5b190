"""
Removal policy guard and cached physical naming for CDK resources.

ResourceProtectionGuard sits between callers and a resource handle. Removal
policies go through a protection check before reaching the handle, physical
names are generated once and cached, and attribute lookups are passed through
untouched.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from aws_cdk import ArnComponents, RemovalPolicy

from .errors import PolicyViolation
from .handle import ResourceHandle
from .naming import NamingContext, StackScopedNameStrategy

logger = logging.getLogger(__name__)

DESTRUCTIVE_POLICIES = (RemovalPolicy.DESTROY,)


class GuardState(Enum):
    UNINITIALIZED = 0
    NAMED = 1
    POLICY_APPLIED = 2


@dataclass(frozen=True)
class ProtectionDecision:
    allowed: bool
    policy: RemovalPolicy
    reason: Optional[str] = None

    @classmethod
    def allow(cls, policy: RemovalPolicy) -> "ProtectionDecision":
        return cls(allowed=True, policy=policy)

    @classmethod
    def block(cls, policy: RemovalPolicy, reason: str) -> "ProtectionDecision":
        return cls(allowed=False, policy=policy, reason=reason)

    @property
    def blocked(self) -> bool:
        return not self.allowed


def decide_removal_policy(
    policy: RemovalPolicy, *, allow_destroy: bool, path: str
) -> ProtectionDecision:
    """Protection rule shared by the guard and BucketProtectionAspect."""
    if policy in DESTRUCTIVE_POLICIES and not allow_destroy:
        return ProtectionDecision.block(policy, f"{policy} requires allow_destroy on {path}")
    return ProtectionDecision.allow(policy)


class ResourceProtectionGuard:
    """
    Protect a resource handle against destructive removal policies.

    Args:
        handle: The wrapped resource
        allow_destroy: Let RemovalPolicy.DESTROY through
        naming_strategy: Callable turning a NamingContext into a physical name
    """

    def __init__(
        self,
        handle: ResourceHandle,
        *,
        allow_destroy: bool = False,
        naming_strategy: Callable[[NamingContext], str] = None,
    ) -> None:
        self._handle = handle
        self._allow_destroy = allow_destroy
        self._naming_strategy = naming_strategy or StackScopedNameStrategy()
        self._generated_name: Optional[str] = None
        self._effective_policy: Optional[RemovalPolicy] = None
        self._state = GuardState.UNINITIALIZED

    @property
    def handle(self) -> ResourceHandle:
        return self._handle

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def allow_destroy(self) -> bool:
        return self._allow_destroy

    @property
    def effective_policy(self) -> Optional[RemovalPolicy]:
        return self._effective_policy

    @property
    def physical_name(self) -> str:
        """The generated name once there is one, otherwise the handle's own."""
        if self._generated_name is not None:
            return self._generated_name
        return self._handle.physical_name

    @property
    def env(self) -> Dict[str, Optional[str]]:
        context = self._handle.naming_context()
        return {"account": context.account, "region": context.region}

    @property
    def stack_name(self) -> str:
        return self._handle.naming_context().stack_name

    def check_removal_policy(self, policy: RemovalPolicy) -> ProtectionDecision:
        """Decide on a policy without touching the handle."""
        return decide_removal_policy(policy, allow_destroy=self._allow_destroy, path=self._handle.path)

    def apply_removal_policy(self, policy: RemovalPolicy) -> ProtectionDecision:
        decision = self.check_removal_policy(policy)
        if decision.blocked:
            logger.warning(f"Blocked removal policy: {decision.reason}")
            return decision

        self._handle.apply_removal_policy(policy)
        self._effective_policy = policy
        self._state = GuardState.POLICY_APPLIED
        return decision

    def enforce_removal_policy(self, policy: RemovalPolicy) -> ProtectionDecision:
        """Like apply_removal_policy, but a blocked policy raises PolicyViolation."""
        decision = self.apply_removal_policy(policy)
        if decision.blocked:
            raise PolicyViolation(policy, self._handle.path, decision.reason)
        return decision

    def generate_physical_name(self) -> str:
        if self._generated_name is None:
            # NamingError propagates and leaves the cache empty
            self._generated_name = self._naming_strategy(self._handle.naming_context())
            if self._state is GuardState.UNINITIALIZED:
                self._state = GuardState.NAMED
        return self._generated_name

    def get_resource_arn_attribute(self, arn_attr: str, arn_components: ArnComponents) -> str:
        return self._handle.get_resource_arn_attribute(arn_attr, arn_components)

    def get_resource_name_attribute(self, name_attr: str) -> str:
        return self._handle.get_resource_name_attribute(name_attr)

    def to_string(self) -> str:
        policy = self._effective_policy if self._effective_policy is not None else "unset"
        return f"ResourceProtectionGuard({self._handle.path}, state={self._state.name}, policy={policy})"

    def __str__(self) -> str:
        return self.to_string()
