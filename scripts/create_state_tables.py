#!/usr/bin/env python3
"""Create the DynamoDB tables used by the Lambda deployment of the broker."""

from __future__ import annotations

import argparse
import json
import os


def table_definitions(environment: str) -> list[dict]:
    """Return create_table kwargs for the instances and keys tables."""
    return [
        {
            "TableName": f"service-broker-instances-{environment}",
            "AttributeDefinitions": [{"AttributeName": "id", "AttributeType": "S"}],
            "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"service-broker-keys-{environment}",
            "AttributeDefinitions": [{"AttributeName": "id", "AttributeType": "S"}],
            "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
            "BillingMode": "PAY_PER_REQUEST",
        },
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description="Create service broker DynamoDB tables")
    parser.add_argument(
        "--environment",
        default=os.environ.get("ENVIRONMENT", "dev"),
        help="Stack environment suffix (default: dev)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_REGION"),
        help="AWS region (or set AWS_REGION)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print table definitions without creating them",
    )
    args = parser.parse_args()

    tables = table_definitions(args.environment)

    if args.dry_run:
        print(json.dumps(tables, indent=2))
        return

    import boto3
    dynamodb = boto3.client("dynamodb", region_name=args.region)

    for table in tables:
        dynamodb.create_table(**table)
        print(f"Creating: {table['TableName']}")

    waiter = dynamodb.get_waiter("table_exists")
    for table in tables:
        waiter.wait(TableName=table["TableName"])

    print(f"\nDone. Set INSTANCES_TABLE={tables[0]['TableName']} KEYS_TABLE={tables[1]['TableName']}")


if __name__ == "__main__":
    main()
