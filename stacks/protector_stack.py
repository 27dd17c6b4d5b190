import logging

from aws_cdk import Aspects, CfnOutput, Stack
from constructs import Construct

from config.loader import InfrastructureContext
from lib.s3_protector import S3Protector
from utils.aspects import BucketProtectionAspect

logger = logging.getLogger(__name__)


class ProtectorStack(Stack):
    """
    Stack hosting the S3 protector.

    Every bucket defined in this stack is covered by BucketProtectionAspect.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        infra_context: InfrastructureContext,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        logger.info(
            f"Creating protector stack (environment: {infra_context.context.env_name}, tenant: {infra_context.context.tenant_name})"
        )

        self._infra_context = infra_context
        protector_config = infra_context.config.protector

        self._s3_protector = S3Protector(
            self,
            "S3Protector",
            protector_config=protector_config,
            naming_config=infra_context.config.naming,
        )

        Aspects.of(self).add(BucketProtectionAspect(allow_destroy=protector_config.allow_destroy))
        infra_context.context.add_stack_global_tags(self)
        self._create_outputs()

        logger.info(f"Protector stack created successfully: {self._s3_protector.guard}")

    @property
    def s3_protector(self) -> S3Protector:
        return self._s3_protector

    def _create_outputs(self) -> None:
        CfnOutput(
            self,
            "RemediationFunctionArn",
            value=self._s3_protector.function.function_arn,
            description="ARN of the S3 protector remediation function",
            export_name=self._infra_context.context.pascal_prefix("S3ProtectorFunctionArn"),
        )
