import logging

import pytest
from aws_cdk import RemovalPolicy
from aws_cdk import aws_s3 as s3
from aws_cdk.assertions import Template

from lib.protection.errors import NamingError, PolicyViolation
from lib.protection.guard import ResourceProtectionGuard
from lib.protection.handle import CdkResourceHandle

logger = logging.getLogger(__name__)


def _bucket_resource(stack):
    resources = Template.from_stack(stack).to_json().get("Resources", {})
    buckets = [res for res in resources.values() if res.get("Type") == "AWS::S3::Bucket"]
    assert len(buckets) == 1
    return buckets[0]


def test_naming_context_from_stack(stack):
    bucket = s3.Bucket(stack, "DataBucket")

    context = CdkResourceHandle(bucket).naming_context()

    assert context.stack_name == "TestStack"
    assert context.account == "123456789012"
    assert context.region == "eu-west-1"
    assert context.path == "TestStack/DataBucket"
    assert "DataBucket" in context.unique_id


def test_naming_context_unresolved_environment(agnostic_stack):
    bucket = s3.Bucket(agnostic_stack, "DataBucket")

    context = CdkResourceHandle(bucket).naming_context()

    assert context.account is None
    assert context.region is None


def test_guard_generates_name_for_bucket(stack):
    guard = ResourceProtectionGuard(CdkResourceHandle(s3.Bucket(stack, "DataBucket")))

    name = guard.generate_physical_name()

    assert name == guard.generate_physical_name()
    assert name.startswith("teststack")
    assert "databucket" in name


def test_guard_naming_error_without_environment(agnostic_stack):
    guard = ResourceProtectionGuard(CdkResourceHandle(s3.Bucket(agnostic_stack, "DataBucket")))

    with pytest.raises(NamingError) as excinfo:
        guard.generate_physical_name()
    assert excinfo.value.path == "AgnosticStack/DataBucket"


def test_guard_retain_reaches_template(stack):
    bucket = s3.Bucket(stack, "DataBucket", removal_policy=RemovalPolicy.DESTROY)
    guard = ResourceProtectionGuard(CdkResourceHandle(bucket))

    assert guard.apply_removal_policy(RemovalPolicy.RETAIN).allowed

    resource = _bucket_resource(stack)
    assert resource.get("DeletionPolicy") == "Retain"
    assert resource.get("UpdateReplacePolicy") == "Retain"


def test_guard_blocked_destroy_leaves_template_untouched(stack):
    bucket = s3.Bucket(stack, "DataBucket")
    guard = ResourceProtectionGuard(CdkResourceHandle(bucket))

    with pytest.raises(PolicyViolation):
        guard.enforce_removal_policy(RemovalPolicy.DESTROY)

    assert _bucket_resource(stack).get("DeletionPolicy") == "Retain"


def test_guard_destroy_with_override(stack):
    bucket = s3.Bucket(stack, "DataBucket")
    guard = ResourceProtectionGuard(CdkResourceHandle(bucket), allow_destroy=True)

    guard.enforce_removal_policy(RemovalPolicy.DESTROY)

    assert _bucket_resource(stack).get("DeletionPolicy") == "Delete"
