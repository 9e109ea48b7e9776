"""DynamoDB-backed state store."""

from __future__ import annotations

import json
from decimal import Decimal

import boto3


def _to_item(record: dict) -> dict:
    """DynamoDB rejects floats; round-trip through JSON to store them as Decimal."""
    return json.loads(json.dumps(record, default=_decimal_default), parse_float=Decimal)


def _decimal_default(value):
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    raise TypeError(f"Object of type {value.__class__.__name__} is not JSON serializable")


class DynamoDBStateStore:
    def __init__(
        self,
        instances_table: str,
        keys_table: str,
        endpoint_url: str | None = None,
        region_name: str | None = None,
    ):
        kwargs = {}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if region_name:
            kwargs["region_name"] = region_name
        dynamodb = boto3.resource("dynamodb", **kwargs)
        self._instances = dynamodb.Table(instances_table)
        self._keys = dynamodb.Table(keys_table)

    # --- Service instances ---

    def get_instance(self, instance_id: str) -> dict | None:
        resp = self._instances.get_item(Key={"id": instance_id})
        return resp.get("Item")

    def put_instance(self, instance: dict) -> None:
        self._instances.put_item(Item=_to_item(instance))

    def update_instance(self, instance_id: str, **fields) -> None:
        update_parts = []
        values = {}
        names = {"#pk": "id"}
        for i, (k, v) in enumerate(fields.items()):
            placeholder = f":v{i}"
            name_placeholder = f"#n{i}"
            update_parts.append(f"{name_placeholder} = {placeholder}")
            values[placeholder] = _to_item({"v": v})["v"]
            names[name_placeholder] = k

        client = self._instances.meta.client
        try:
            self._instances.update_item(
                Key={"id": instance_id},
                UpdateExpression="SET " + ", ".join(update_parts),
                ExpressionAttributeValues=values,
                ExpressionAttributeNames=names,
                ConditionExpression="attribute_exists(#pk)",
            )
        except client.exceptions.ConditionalCheckFailedException as exc:
            raise KeyError(f"Service instance {instance_id} not found") from exc

    def delete_instance(self, instance_id: str) -> None:
        self._instances.delete_item(Key={"id": instance_id})

    # --- Service keys ---

    def get_key(self, key_id: str) -> dict | None:
        resp = self._keys.get_item(Key={"id": key_id})
        return resp.get("Item")

    def put_key(self, key: dict) -> None:
        self._keys.put_item(Item=_to_item(key))

    def delete_key(self, key_id: str) -> None:
        self._keys.delete_item(Key={"id": key_id})
