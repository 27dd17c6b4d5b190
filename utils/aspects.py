# utils/aspects.py
import logging

import aws_cdk.aws_s3 as s3
import jsii
from aws_cdk import Annotations, CfnDeletionPolicy, IAspect, RemovalPolicy

from lib.protection.guard import decide_removal_policy

logger = logging.getLogger(__name__)


@jsii.implements(IAspect)
class BucketProtectionAspect:
    """Switch buckets left on a Delete deletion policy to Retain.

    The decision is the guard's one: with allow_destroy set buckets keep Delete.
    """

    def __init__(self, allow_destroy: bool = False):
        self._allow_destroy = allow_destroy

    def visit(self, node):
        # we look only for CfnBucket (S3) resources
        if not isinstance(node, s3.CfnBucket):
            return
        if node.cfn_options.deletion_policy != CfnDeletionPolicy.DELETE:
            return

        decision = decide_removal_policy(
            RemovalPolicy.DESTROY, allow_destroy=self._allow_destroy, path=node.node.path
        )
        if decision.allowed:
            return

        logger.warning(f"Bucket retained: {decision.reason}")
        node.apply_removal_policy(RemovalPolicy.RETAIN)
        Annotations.of(node).add_warning_v2(
            "s3-protector:bucket-retained",
            "Bucket deletion policy was Delete, switched to Retain (set allow_destroy to keep Delete)",
        )
