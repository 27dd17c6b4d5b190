import logging
from typing import Optional, Protocol

from aws_cdk import ArnComponents, Names, RemovalPolicy, Resource, Stack, Token

from .naming import NamingContext

logger = logging.getLogger(__name__)


class ResourceHandle(Protocol):
    """What the protection guard needs from the resource it wraps."""

    @property
    def path(self) -> str: ...

    @property
    def physical_name(self) -> str: ...

    def naming_context(self) -> NamingContext: ...

    def apply_removal_policy(self, policy: RemovalPolicy) -> None: ...

    def get_resource_arn_attribute(self, arn_attr: str, arn_components: ArnComponents) -> str: ...

    def get_resource_name_attribute(self, name_attr: str) -> str: ...


def _resolved(value: str) -> Optional[str]:
    if not value or Token.is_unresolved(value):
        return None
    return value


class CdkResourceHandle:
    """ResourceHandle backed by a CDK Resource (Bucket, CustomResource, ...)."""

    def __init__(self, resource: Resource):
        self._resource = resource

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def path(self) -> str:
        return self._resource.node.path

    @property
    def physical_name(self) -> str:
        return self._resource.physical_name

    def naming_context(self) -> NamingContext:
        stack = Stack.of(self._resource)
        return NamingContext(
            stack_name=stack.stack_name,
            unique_id=Names.node_unique_id(self._resource.node),
            path=self.path,
            account=_resolved(stack.account),
            region=_resolved(stack.region),
        )

    def apply_removal_policy(self, policy: RemovalPolicy) -> None:
        logger.info(f"Applying removal policy {policy} to {self.path}")
        self._resource.apply_removal_policy(policy)

    def get_resource_arn_attribute(self, arn_attr: str, arn_components: ArnComponents) -> str:
        return self._resource.get_resource_arn_attribute(arn_attr, arn_components)

    def get_resource_name_attribute(self, name_attr: str) -> str:
        return self._resource.get_resource_name_attribute(name_attr)
