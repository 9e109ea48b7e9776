"""Configuration helpers that read from environment variables."""

from __future__ import annotations

import os
from pathlib import Path


def get_env(name: str, default: str | None = None) -> str:
    """Get an environment variable, raising if missing and no default."""
    value = os.environ.get(name, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


_BUNDLED_CATALOG = Path(__file__).resolve().parent.parent / "assets" / "catalog.json"

# Local persistence
DATA_PATH = lambda: get_env("DATA_PATH", "data")
SERVICE_INSTANCES_FILE_NAME = lambda: get_env("SERVICE_INSTANCES_FILE_NAME", "service_instances.json")
SERVICE_KEYS_FILE_NAME = lambda: get_env("SERVICE_KEYS_FILE_NAME", "service_keys.json")
CATALOG_PATH = lambda: get_env("CATALOG_PATH", str(_BUNDLED_CATALOG))

# Table names for the Lambda deployment
INSTANCES_TABLE = lambda: get_env("INSTANCES_TABLE")
KEYS_TABLE = lambda: get_env("KEYS_TABLE")

# Broker credentials (auth disabled when either is empty)
BROKER_USERNAME = lambda: get_env("BROKER_USERNAME", "")
BROKER_PASSWORD = lambda: get_env("BROKER_PASSWORD", "")

CLOUD_REGION = lambda: get_env("CLOUD_REGION", "us-east-1")
DASHBOARD_URL = lambda: get_env("DASHBOARD_URL", "http://dashbaord_url")
DEFAULT_POLLING_INTERVAL_SECONDS = 10

# EC2 instances backing service instances
BROKER_AMI_ID = lambda: get_env("BROKER_AMI_ID")
BROKER_INSTANCE_TYPE = lambda: get_env("BROKER_INSTANCE_TYPE", "t2.micro")
BROKER_SUBNET_ID = lambda: get_env("BROKER_SUBNET_ID", "")
BROKER_SECURITY_GROUP_ID = lambda: get_env("BROKER_SECURITY_GROUP_ID", "")
BROKER_INSTANCE_PROFILE_ARN = lambda: get_env("BROKER_INSTANCE_PROFILE_ARN", "")
BROKER_SSH_USER = lambda: get_env("BROKER_SSH_USER", "ec2-user")
