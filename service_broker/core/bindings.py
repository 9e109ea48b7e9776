"""Service binding logic: issue and revoke SSH credentials."""

from __future__ import annotations

import logging

from service_broker.core.interfaces import CloudClient, CloudClientError, StateStore

logger = logging.getLogger(__name__)


def bind(instance_guid: str, binding_guid: str, state: StateStore, cloud: CloudClient) -> dict:
    """Inject a new key pair into the instance's VM and record it as a service key.

    The private key is returned as the binding's credentials. Repeating a bind
    for the same instance returns the recorded key without touching the VM; a
    binding id already owned by another instance is a conflict.
    """
    instance = state.get_instance(instance_guid)
    if instance is None:
        return {"status_code": 404, "body": {}}

    existing = state.get_key(binding_guid)
    if existing is not None:
        if existing.get("service_instance_id") != instance_guid:
            return {"status_code": 409, "body": {}}
        return {"status_code": 200, "body": {"credentials": {"private_key": existing["private_key"]}}}

    try:
        private_key = cloud.inject_key_pair(instance["internal_id"])
    except CloudClientError:
        logger.exception("Failed to inject key pair into %s", instance["internal_id"])
        return {"status_code": 500, "body": {}}

    state.put_key(
        {
            "id": binding_guid,
            "service_instance_id": instance["id"],
            "service_id": instance.get("service_id", ""),
            "service_plan_id": instance.get("plan_id", ""),
            "private_key": private_key,
        }
    )
    logger.info("Created binding %s for service instance %s", binding_guid, instance_guid)

    return {"status_code": 201, "body": {"credentials": {"private_key": private_key}}}


def unbind(instance_guid: str, binding_guid: str, state: StateStore, cloud: CloudClient) -> dict:
    """Revoke the binding's key on the VM and delete the service key."""
    instance = state.get_instance(instance_guid)
    if instance is None:
        return {"status_code": 410, "body": {}}

    key = state.get_key(binding_guid)
    # A binding of another instance is Gone from this one's point of view.
    if key is None or key.get("service_instance_id") != instance_guid:
        return {"status_code": 410, "body": {}}

    try:
        cloud.revoke_key_pair(instance["internal_id"], key["private_key"])
    except CloudClientError as exc:
        logger.exception("Failed to revoke binding %s on %s", binding_guid, instance["internal_id"])
        return {"status_code": 500, "body": {"description": str(exc)}}

    state.delete_key(binding_guid)
    logger.info("Removed binding %s from service instance %s", binding_guid, instance_guid)
    return {"status_code": 200, "body": {}}
