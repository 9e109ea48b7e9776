"""Request routing for the Open Service Broker v2 API.

Maps (method, path) pairs onto the core broker operations. Shared by the
Lambda handler and the local HTTP server so both expose identical routes.
"""

from __future__ import annotations

import json
import logging
import re

from service_broker.core import bindings, instances
from service_broker.core.auth import is_authorized
from service_broker.core.catalog import get_catalog
from service_broker.core.interfaces import CloudClient, StateStore

logger = logging.getLogger(__name__)

_CATALOG = re.compile(r"^/v2/catalog/?$")
_INSTANCE = re.compile(r"^/v2/service_instances/(?P<instance>[^/]+)/?$")
_LAST_OPERATION = re.compile(r"^/v2/service_instances/(?P<instance>[^/]+)/last_operation/?$")
_BINDING = re.compile(
    r"^/v2/service_instances/(?P<instance>[^/]+)/service_bindings/(?P<binding>[^/]+)/?$"
)


def _parse_body(raw: str | bytes | None) -> dict:
    """Parse a JSON request body; an empty body is treated as ``{}``."""
    if not raw:
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def route_request(
    method: str,
    path: str,
    body: str | bytes | None,
    headers: dict,
    state: StateStore,
    cloud: CloudClient,
    *,
    catalog_path: str,
    dashboard_url: str = instances.DEFAULT_DASHBOARD_URL,
    username: str = "",
    password: str = "",
) -> dict:
    """Dispatch one broker API request.

    Returns a normalized response payload:
    ``{"status_code": int, "body": dict, "headers": dict | None}``.
    """
    method = method.upper()
    lowered = {k.lower(): v for k, v in (headers or {}).items()}

    if not is_authorized(lowered.get("authorization", ""), username, password):
        return {
            "status_code": 401,
            "body": {"description": "unauthorized"},
            "headers": {"WWW-Authenticate": 'Basic realm="service-broker"'},
        }

    if _CATALOG.match(path):
        if method == "GET":
            return get_catalog(catalog_path)
        return _method_not_allowed("GET")

    match = _LAST_OPERATION.match(path)
    if match:
        if method == "GET":
            return instances.get_instance(match["instance"], state, cloud, dashboard_url)
        return _method_not_allowed("GET")

    match = _INSTANCE.match(path)
    if match:
        guid = match["instance"]
        if method == "PUT":
            try:
                spec = _parse_body(body)
            except ValueError:
                logger.exception("Malformed provision request for %s", guid)
                return {"status_code": 500, "body": {}}
            return instances.create_instance(guid, spec, state, cloud, dashboard_url)
        if method == "GET":
            return instances.get_instance(guid, state, cloud, dashboard_url)
        if method == "DELETE":
            return instances.delete_instance(guid, state, cloud)
        return _method_not_allowed("GET, PUT, DELETE")

    match = _BINDING.match(path)
    if match:
        if method == "PUT":
            return bindings.bind(match["instance"], match["binding"], state, cloud)
        if method == "DELETE":
            return bindings.unbind(match["instance"], match["binding"], state, cloud)
        return _method_not_allowed("PUT, DELETE")

    return {"status_code": 404, "body": {"description": "not found"}}


def _method_not_allowed(allowed: str) -> dict:
    return {
        "status_code": 405,
        "body": {"description": "method not allowed"},
        "headers": {"Allow": allowed},
    }
