"""
Lambda function reverting S3 changes that make buckets or objects public.

It receives CloudTrail "AWS API Call via CloudTrail" events from EventBridge
for PutBucketAcl, PutObjectAcl, PutBucketPublicAccessBlock and
PutAccountPublicAccessBlock, and puts the bucket, object or account back into a
private state. It is also the onEvent handler of the S3Protector custom
resource provider; lifecycle events carry no CloudTrail detail and are only
acknowledged.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

s3_client = boto3.client("s3")
s3control_client = boto3.client("s3control")
sts_client = boto3.client("sts")

PUBLIC_GRANTEES = ("AllUsers", "AuthenticatedUsers")

BLOCK_ALL_PUBLIC_ACCESS = {
    "BlockPublicAcls": True,
    "IgnorePublicAcls": True,
    "BlockPublicPolicy": True,
    "RestrictPublicBuckets": True,
}


def request_parameters(event: Dict[str, Any]) -> Dict[str, Any]:
    """CloudTrail records requestParameters as null for some calls."""
    return (event.get("detail") or {}).get("requestParameters") or {}


def should_short_circuit(event: Dict[str, Any]) -> bool:
    """The requested canned ACL is already private."""
    acl = request_parameters(event).get("x-amz-acl")
    if acl:
        logger.info(f"ACL is currently {acl[0]}")
        if acl[0] == "private":
            logger.info("ACL is already private. Ending.")
            return True
    return False


def should_prevent_loop(event: Dict[str, Any]) -> bool:
    """The recorded call failed, so there is nothing to revert."""
    detail = event["detail"]
    if detail.get("errorCode") or detail.get("errorMessage"):
        logger.info("Previous API call resulted in an error. Ending")
        return True
    return False


def get_bucket_acl(bucket_name: str) -> Optional[Dict[str, Any]]:
    try:
        logger.info(f"Describing the current ACL: s3://{bucket_name}")
        bucket_acl = s3_client.get_bucket_acl(Bucket=bucket_name)
        logger.info(json.dumps(bucket_acl, default=str))
        return bucket_acl
    except ClientError as e:
        logger.error(f"Error was: {e} Manual followup recommended")
        return None


def collect_grantee_uris(bucket_acl: Dict[str, Any]) -> Tuple[List[str], List[Dict[str, Any]]]:
    """Return every group grantee URI and the LogDelivery grants to preserve."""
    uris = []
    log_delivery_grants = []
    for grant in bucket_acl.get("Grants", []):
        uri = grant.get("Grantee", {}).get("URI")
        if uri:
            logger.info(f"Found Grant: {json.dumps(grant)}")
            uris.append(uri)
            if "LogDelivery" in uri:
                log_delivery_grants.append(grant)
    return uris, log_delivery_grants


def is_bucket_acl_violation(uris: List[str]) -> bool:
    if any(grantee in uri for uri in uris for grantee in PUBLIC_GRANTEES):
        logger.info("Violation found. Grant ACL greater than Private")
        return True
    logger.info("ACL is correctly already private")
    return False


def correct_bucket_acl(
    bucket_name: str, bucket_acl: Dict[str, Any], log_delivery_grants: List[Dict[str, Any]]
) -> bool:
    logger.info("Attempting Automatic Resolution")
    try:
        if log_delivery_grants:
            logger.info(f"Resetting ACL to LogDelivery, preserving: {json.dumps(log_delivery_grants)}")
            response = s3_client.put_bucket_acl(
                Bucket=bucket_name,
                AccessControlPolicy={
                    "Grants": log_delivery_grants,
                    "Owner": bucket_acl["Owner"],
                },
            )
            success_message = "Reverted to only contain LogDelivery"
        else:
            logger.info("Resetting ACL to Private")
            response = s3_client.put_bucket_acl(Bucket=bucket_name, ACL="private")
            success_message = "Bucket ACL has been changed to Private"
    except ClientError as e:
        logger.error(f"Unable to resolve violation automatically. Error was: {e}")
        return False

    status_code = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    if status_code == 200:
        logger.info(success_message)
        return True
    logger.error(f"PutBucketAcl returned {status_code}. Manual followup")
    return False


def remediate_bucket_acl(event: Dict[str, Any]) -> bool:
    """Handle PutBucketAcl. Returns True when a violation was corrected."""
    if should_short_circuit(event) or should_prevent_loop(event):
        return False

    bucket_name = request_parameters(event).get("bucketName")
    if not bucket_name:
        logger.info("No bucketName in request parameters. Ending")
        return False
    bucket_acl = get_bucket_acl(bucket_name)
    if bucket_acl is None:
        return False

    uris, log_delivery_grants = collect_grantee_uris(bucket_acl)
    if not is_bucket_acl_violation(uris):
        return False
    return correct_bucket_acl(bucket_name, bucket_acl, log_delivery_grants)


def is_object_private(bucket: str, key: str) -> bool:
    logger.info(f"Describing the ACL: s3://{bucket}/{key}")
    acl = s3_client.get_object_acl(Bucket=bucket, Key=key)
    grants = acl.get("Grants", [])

    if len(grants) > 1:
        logger.info("Greater than one Grant")
        return False

    owner_id = acl.get("Owner", {}).get("ID")
    grantee_id = grants[0].get("Grantee", {}).get("ID") if grants else owner_id
    if owner_id != grantee_id:
        logger.info(f"owner:[{owner_id}], grantee[{grantee_id}] do not match")
        return False
    return True


def remediate_object_acl(event: Dict[str, Any]) -> bool:
    """Handle PutObjectAcl. Returns True when the object was made private."""
    if should_prevent_loop(event):
        return False

    params = request_parameters(event)
    bucket, key = params.get("bucketName"), params.get("key")
    if not bucket or not key:
        logger.info("No bucketName/key in request parameters. Ending")
        return False
    if is_object_private(bucket, key):
        return False

    logger.info(f"Making s3://{bucket}/{key} private")
    s3_client.put_object_acl(Bucket=bucket, Key=key, ACL="private")
    return True


def is_public_access_blocked(configuration: Optional[Dict[str, Any]]) -> bool:
    configuration = configuration or {}
    return all(configuration.get(flag) for flag in BLOCK_ALL_PUBLIC_ACCESS)


def remediate_bucket_public_access_block(event: Dict[str, Any]) -> bool:
    params = request_parameters(event)
    configuration = params.get("PublicAccessBlockConfiguration")
    logger.info(json.dumps(configuration))
    if is_public_access_blocked(configuration):
        return False

    bucket = params.get("bucketName")
    if not bucket:
        logger.info("No bucketName in request parameters. Ending")
        return False
    logger.info(f"s3://{bucket} now not private, fixing...")
    response = s3_client.put_public_access_block(
        Bucket=bucket,
        PublicAccessBlockConfiguration=dict(BLOCK_ALL_PUBLIC_ACCESS),
    )
    logger.info(json.dumps(response, default=str))
    return True


def remediate_account_public_access_block(event: Dict[str, Any]) -> bool:
    configuration = request_parameters(event).get("PublicAccessBlockConfiguration")
    logger.info(json.dumps(configuration))
    if is_public_access_blocked(configuration):
        return False

    account_id = sts_client.get_caller_identity()["Account"]
    logger.info(f"Account {account_id} public access block disabled, fixing...")
    response = s3control_client.put_public_access_block(
        AccountId=account_id,
        PublicAccessBlockConfiguration=dict(BLOCK_ALL_PUBLIC_ACCESS),
    )
    logger.info(json.dumps(response, default=str))
    return True


REMEDIATIONS = {
    "PutBucketAcl": remediate_bucket_acl,
    "PutObjectAcl": remediate_object_acl,
    "PutBucketPublicAccessBlock": remediate_bucket_public_access_block,
    "PutAccountPublicAccessBlock": remediate_account_public_access_block,
}


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Dispatch a CloudTrail S3 event to its remediation.

    Args:
        event: EventBridge event, or a custom resource lifecycle event
        context: Lambda context

    Returns:
        Summary of what was handled
    """
    logger.info(f"Received event: {json.dumps(event, default=str)}")

    if "RequestType" in event:
        logger.info(f"No action needed for custom resource {event['RequestType']}")
        return {"Data": {"Message": f"Custom resource {event['RequestType']} acknowledged"}}

    event_name = (event.get("detail") or {}).get("eventName")
    if event_name not in REMEDIATIONS:
        logger.info(f"Ignoring event: {event_name}")
        return {"eventName": event_name, "remediated": False}

    logger.info("=" * 86)
    logger.info(f"eventName: {event_name}")
    remediated = REMEDIATIONS[event_name](event)
    return {"eventName": event_name, "remediated": remediated}
