import logging
from pathlib import Path

from aws_cdk import CustomResource, Duration, RemovalPolicy, Resource
from aws_cdk import aws_events as events
from aws_cdk import aws_events_targets as targets
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_logs as logs
from aws_cdk import custom_resources as cr
from constructs import Construct

from config.base_config import NamingConfig, ProtectorConfig
from lib.protection.guard import ResourceProtectionGuard
from lib.protection.handle import CdkResourceHandle
from lib.protection.naming import StackScopedNameStrategy

logger = logging.getLogger(__name__)

LAMBDA_DIR = Path(__file__).resolve().parent / "s3_protector_lambda"


class S3Protector(Resource):
    """
    Reverts S3 ACL and public access block changes that expose data.

    Deploys the remediation Lambda behind a custom resource provider and, when
    enabled, an EventBridge rule feeding it CloudTrail S3 API calls. The
    custom resource is wrapped in a ResourceProtectionGuard carrying the
    configured removal policy.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        protector_config: ProtectorConfig = None,
        naming_config: NamingConfig = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self._protector_config = protector_config or ProtectorConfig()
        self._naming_strategy = StackScopedNameStrategy(naming_config)

        logger.info("Creating S3 protector...")
        logger.info(f"S3 protector parameters: {self._protector_config}")

        self._function = self._create_function()
        self._custom_resource = self._create_custom_resource()
        if self._protector_config.watch_api_calls:
            self._rule = self._create_api_call_rule()
        else:
            self._rule = None

        self._guard = self.protect(self._custom_resource)
        self._guard.enforce_removal_policy(self._protector_config.cdk_removal_policy)

        logger.info("S3 protector created successfully")

    @property
    def function(self) -> lambda_.Function:
        return self._function

    @property
    def custom_resource(self) -> CustomResource:
        return self._custom_resource

    @property
    def rule(self) -> events.Rule:
        return self._rule

    @property
    def guard(self) -> ResourceProtectionGuard:
        return self._guard

    def protect(self, resource: Resource) -> ResourceProtectionGuard:
        """
        Wrap another resource with this protector's guard settings.

        The returned guard is also how callers get physical names built from
        the `naming:` configuration, e.g.
        `protector.protect(bucket).generate_physical_name()`.
        """
        logger.info(f"Protecting {resource.node.path}")
        return ResourceProtectionGuard(
            CdkResourceHandle(resource),
            allow_destroy=self._protector_config.allow_destroy,
            naming_strategy=self._naming_strategy,
        )

    def _create_function(self) -> lambda_.Function:
        log_group = logs.LogGroup(
            self,
            "RemediationLogGroup",
            retention=logs.RetentionDays.ONE_MONTH,
            removal_policy=RemovalPolicy.DESTROY,
        )

        function = lambda_.Function(
            self,
            "RemediationFunction",
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="remediate_public_access.handler",
            code=lambda_.Code.from_asset(str(LAMBDA_DIR)),
            timeout=Duration.seconds(self._protector_config.lambda_timeout_seconds),
            tracing=(
                lambda_.Tracing.ACTIVE
                if self._protector_config.tracing_enabled
                else lambda_.Tracing.DISABLED
            ),
            log_group=log_group,
        )

        function.add_to_role_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=[
                    "s3:GetBucketAcl",
                    "s3:PutBucketAcl",
                    "s3:GetObjectAcl",
                    "s3:PutObjectAcl",
                    "s3:PutObject",
                    "s3:PutBucketPublicAccessBlock",
                    "s3:PutAccountPublicAccessBlock",
                ],
                resources=["*"],
            )
        )
        return function

    def _create_custom_resource(self) -> CustomResource:
        provider = cr.Provider(self, "Provider", on_event_handler=self._function)
        return CustomResource(self, "CR", service_token=provider.service_token)

    def _create_api_call_rule(self) -> events.Rule:
        logger.info(f"Watching S3 API calls: {self._protector_config.monitored_events}")
        rule = events.Rule(
            self,
            "ApiCallRule",
            description="Forward public-exposing S3 API calls to the S3 protector",
            event_pattern=events.EventPattern(
                source=["aws.s3"],
                detail_type=["AWS API Call via CloudTrail"],
                detail={
                    "eventSource": ["s3.amazonaws.com"],
                    "eventName": list(self._protector_config.monitored_events),
                },
            ),
        )
        rule.add_target(targets.LambdaFunction(self._function))
        return rule
