"""AWS Lambda handler entry point.

A thin wrapper that parses API Gateway v2 events, builds backend dependencies,
calls the cloud-agnostic broker routes, and formats responses. All business
logic lives in service_broker/core/.
"""

from __future__ import annotations

import base64
import json
import logging
from decimal import Decimal

logger = logging.getLogger(__name__)


# ---- Shared helpers ----


def _get_state_store():
    """Build a DynamoDBStateStore from environment variables."""
    from service_broker.shared.config import INSTANCES_TABLE, KEYS_TABLE
    from service_broker.backends.aws.state import DynamoDBStateStore

    return DynamoDBStateStore(
        instances_table=INSTANCES_TABLE(),
        keys_table=KEYS_TABLE(),
    )


def build_cloud_client():
    """Build an EC2CloudClient from environment variables."""
    from service_broker.shared import config
    from service_broker.backends.aws.cloud import EC2CloudClient

    return EC2CloudClient(
        ami_id=config.BROKER_AMI_ID(),
        region_name=config.CLOUD_REGION(),
        instance_type=config.BROKER_INSTANCE_TYPE(),
        subnet_id=config.BROKER_SUBNET_ID(),
        security_group_id=config.BROKER_SECURITY_GROUP_ID(),
        instance_profile_arn=config.BROKER_INSTANCE_PROFILE_ARN(),
        ssh_user=config.BROKER_SSH_USER(),
    )


def _api_response(status_code: int, body: dict, headers: dict | None = None) -> dict:
    """Format an API Gateway v2 response."""
    resp = {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=_json_default),
    }
    if headers:
        resp["headers"].update(headers)
    return resp


def _json_default(value):
    """Serialize DynamoDB types that Python's JSON encoder does not handle."""
    if isinstance(value, Decimal):
        # Preserve integer semantics when possible (e.g. Decimal("10") -> 10).
        return int(value) if value == value.to_integral_value() else float(value)
    raise TypeError(f"Object of type {value.__class__.__name__} is not JSON serializable")


def _event_body(event) -> str:
    body = event.get("body") or ""
    if body and event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return body


# ---- Broker API ----


def broker_handler(event, context):
    """Broker Lambda serving the Open Service Broker v2 routes."""
    from service_broker.core.dispatch import route_request
    from service_broker.shared.config import (
        BROKER_PASSWORD,
        BROKER_USERNAME,
        CATALOG_PATH,
        DASHBOARD_URL,
    )

    method = event.get("requestContext", {}).get("http", {}).get("method", "GET")
    path = event.get("rawPath", "")

    result = route_request(
        method,
        path,
        _event_body(event),
        event.get("headers") or {},
        _get_state_store(),
        build_cloud_client(),
        catalog_path=CATALOG_PATH(),
        dashboard_url=DASHBOARD_URL(),
        username=BROKER_USERNAME(),
        password=BROKER_PASSWORD(),
    )
    if result["status_code"] >= 500:
        logger.warning("%s %s failed with %s", method, path, result["status_code"])

    return _api_response(result["status_code"], result["body"], result.get("headers"))
