#!/usr/bin/env python3
"""Run the service broker HTTP API on this host with JSON-file persistence."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Ensure repository root is importable when running from a checkout.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def main() -> None:
    from service_broker.shared import config

    parser = argparse.ArgumentParser(description="Run the service broker API")
    parser.add_argument("--host", default=os.environ.get("BROKER_HOST", "0.0.0.0"), help="Bind address")
    parser.add_argument(
        "--port", type=int, default=int(os.environ.get("BROKER_PORT", "8080")), help="Listen port"
    )
    parser.add_argument("--data-path", default=config.DATA_PATH(), help="Directory for persisted state (or DATA_PATH)")
    parser.add_argument(
        "--mock-cloud",
        action="store_true",
        help="Use the in-process mock cloud instead of EC2",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Logging level (or LOG_LEVEL)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from service_broker.backends.local.server import BrokerHTTPServer
    from service_broker.backends.local.state import JsonFileStateStore

    state = JsonFileStateStore(
        data_path=args.data_path,
        instances_file=config.SERVICE_INSTANCES_FILE_NAME(),
        keys_file=config.SERVICE_KEYS_FILE_NAME(),
    )

    if args.mock_cloud:
        from service_broker.backends.mock.cloud import MockCloudClient

        cloud = MockCloudClient(initial_state="running")
    else:
        from service_broker.backends.aws.handlers import build_cloud_client

        cloud = build_cloud_client()

    server = BrokerHTTPServer(
        state=state,
        cloud=cloud,
        catalog_path=config.CATALOG_PATH(),
        host=args.host,
        port=args.port,
        dashboard_url=config.DASHBOARD_URL(),
        username=config.BROKER_USERNAME(),
        password=config.BROKER_PASSWORD(),
    )
    logging.getLogger(__name__).info("Service broker listening on %s", server.url)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
