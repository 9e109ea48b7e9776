"""E2E test fixtures: local broker HTTP server plus optional LocalStack-backed DynamoDB."""

from __future__ import annotations

import os
import sys
import uuid

import boto3
import pytest
from botocore.exceptions import BotoCoreError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from service_broker.backends.local.server import BrokerHTTPServer
from service_broker.backends.local.state import JsonFileStateStore
from service_broker.backends.mock.cloud import MockCloudClient
from service_broker.shared import config


@pytest.fixture
def broker_server(tmp_path):
    """Start a broker HTTP server on a random port with file persistence."""
    state = JsonFileStateStore(str(tmp_path), "service_instances.json", "service_keys.json")
    cloud = MockCloudClient()
    server = BrokerHTTPServer(
        state=state,
        cloud=cloud,
        catalog_path=config.CATALOG_PATH(),
        username="broker",
        password="secret",
    )
    server.start()
    yield server
    server.stop()


@pytest.fixture(scope="session")
def localstack_env():
    """Start LocalStack and provision the DynamoDB tables used by the handler."""
    try:
        from testcontainers.core.exceptions import ContainerStartException
        from testcontainers.localstack import LocalStackContainer
    except ModuleNotFoundError as exc:
        pytest.skip(f"LocalStack tests require testcontainers dependency: {exc}")

    container = LocalStackContainer(image="localstack/localstack:3.0").with_services("dynamodb")

    try:
        container.start()
    except (ContainerStartException, BotoCoreError, OSError) as exc:
        pytest.skip(f"LocalStack unavailable in this environment: {exc}")

    endpoint_url = container.get_url()
    region = "us-east-1"
    access_key = "test"
    secret_key = "test"

    os.environ.setdefault("AWS_ACCESS_KEY_ID", access_key)
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", secret_key)
    os.environ.setdefault("AWS_DEFAULT_REGION", region)

    suffix = uuid.uuid4().hex[:8]
    instances_table = f"service-broker-instances-e2e-{suffix}"
    keys_table = f"service-broker-keys-e2e-{suffix}"

    dynamodb = boto3.client(
        "dynamodb",
        endpoint_url=endpoint_url,
        region_name=region,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
    )

    for table_name in (instances_table, keys_table):
        dynamodb.create_table(
            TableName=table_name,
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            BillingMode="PAY_PER_REQUEST",
        )

    waiter = dynamodb.get_waiter("table_exists")
    for table_name in (instances_table, keys_table):
        waiter.wait(TableName=table_name)

    yield {
        "endpoint_url": endpoint_url,
        "region": region,
        "instances_table": instances_table,
        "keys_table": keys_table,
    }

    container.stop()
