"""Service instance lifecycle: provision, poll, deprovision.

Cloud-agnostic: depends on StateStore and CloudClient protocols.
"""

from __future__ import annotations

import logging

from service_broker.core.interfaces import CloudClient, CloudClientError, StateStore
from service_broker.shared.config import DEFAULT_POLLING_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_DASHBOARD_URL = "http://dashbaord_url"

STATE_IN_PROGRESS = "in progress"
STATE_SUCCEEDED = "succeeded"
STATE_FAILED = "failed"


def last_operation_for(provider_state: str) -> dict:
    """Map a provider instance state onto an Open Service Broker last operation."""
    if provider_state == "pending":
        state, description = STATE_IN_PROGRESS, "creating service instance..."
    elif provider_state == "running":
        state, description = STATE_SUCCEEDED, "successfully created service instance"
    else:
        state, description = STATE_FAILED, "failed to create service instance"

    return {
        "state": state,
        "description": description,
        "async_poll_interval_seconds": DEFAULT_POLLING_INTERVAL_SECONDS,
    }


def create_instance(
    instance_guid: str,
    spec: dict,
    state: StateStore,
    cloud: CloudClient,
    dashboard_url: str = DEFAULT_DASHBOARD_URL,
) -> dict:
    """Provision a VM and record it as a new service instance."""
    if state.get_instance(instance_guid) is not None:
        logger.info("Service instance %s already exists", instance_guid)
        return {"status_code": 409, "body": {}}

    try:
        internal_id = cloud.create_instance()
    except CloudClientError:
        logger.exception("Failed to provision VM for service instance %s", instance_guid)
        return {"status_code": 500, "body": {}}

    last_operation = last_operation_for("pending")
    instance = {
        "id": instance_guid,
        "internal_id": internal_id,
        "service_id": spec.get("service_id", ""),
        "plan_id": spec.get("plan_id", ""),
        "organization_guid": spec.get("organization_guid", ""),
        "space_guid": spec.get("space_guid", ""),
        "parameters": spec.get("parameters") or {},
        "dashboard_url": dashboard_url,
        "last_operation": last_operation,
    }
    state.put_instance(instance)
    logger.info("Provisioning service instance %s on %s", instance_guid, internal_id)

    return {
        "status_code": 200,
        "body": {"dashboard_url": dashboard_url, "last_operation": last_operation},
    }


def get_instance(
    instance_guid: str,
    state: StateStore,
    cloud: CloudClient,
    dashboard_url: str = DEFAULT_DASHBOARD_URL,
) -> dict:
    """Re-derive the instance's last operation from its live provider state."""
    instance = state.get_instance(instance_guid)
    if instance is None:
        return {"status_code": 404, "body": {}}

    try:
        provider_state = cloud.get_instance_state(instance["internal_id"])
    except CloudClientError:
        logger.exception("Failed to query state of %s", instance["internal_id"])
        return {"status_code": 500, "body": {}}

    last_operation = last_operation_for(provider_state)
    if last_operation != instance.get("last_operation"):
        try:
            state.update_instance(instance_guid, last_operation=last_operation)
        except KeyError:
            # Deprovisioned while the provider was being queried.
            logger.info("Service instance %s removed during state refresh", instance_guid)
            return {"status_code": 404, "body": {}}

    return {
        "status_code": 200,
        "body": {"dashboard_url": dashboard_url, "last_operation": last_operation},
    }


def delete_instance(instance_guid: str, state: StateStore, cloud: CloudClient) -> dict:
    """Terminate the VM and forget the instance.

    Keys bound to the instance are left in place.
    """
    instance = state.get_instance(instance_guid)
    if instance is None:
        return {"status_code": 410, "body": {}}

    try:
        cloud.delete_instance(instance["internal_id"])
    except CloudClientError as exc:
        logger.exception("Failed to terminate %s for service instance %s", instance["internal_id"], instance_guid)
        return {"status_code": 500, "body": {"description": str(exc)}}

    state.delete_instance(instance_guid)
    logger.info("Deprovisioned service instance %s", instance_guid)
    return {"status_code": 200, "body": {}}
