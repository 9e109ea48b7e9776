"""Abstract interfaces for service broker backends.

Core broker logic depends only on these protocols, never on cloud-specific
SDKs like boto3. To add a new cloud or storage backend, implement these
protocols and wire them up in a thin entry-point layer.
"""

from __future__ import annotations

from typing import Protocol


class CloudClientError(Exception):
    """Raised by cloud clients when a provider call fails."""


class StateStore(Protocol):
    """Persistent state for service instances and service keys."""

    # --- Service instances ---

    def get_instance(self, instance_id: str) -> dict | None:
        """Get a single service instance by broker GUID."""
        ...

    def put_instance(self, instance: dict) -> None:
        """Create or overwrite a service instance record."""
        ...

    def update_instance(self, instance_id: str, **fields) -> None:
        """Update specific fields on a service instance record."""
        ...

    def delete_instance(self, instance_id: str) -> None:
        """Delete a service instance record (no-op when absent)."""
        ...

    # --- Service keys ---

    def get_key(self, key_id: str) -> dict | None:
        """Get a service key by binding GUID."""
        ...

    def put_key(self, key: dict) -> None:
        """Store a service key record."""
        ...

    def delete_key(self, key_id: str) -> None:
        """Delete a service key record (no-op when absent)."""
        ...


class CloudClient(Protocol):
    """Create and manage the virtual machines backing service instances.

    Every method raises CloudClientError when the provider call fails.
    """

    def create_instance(self) -> str:
        """Launch a VM and return the provider's instance id."""
        ...

    def get_instance_state(self, instance_id: str) -> str:
        """Return the provider state name ("pending", "running", ...)."""
        ...

    def delete_instance(self, instance_id: str) -> None:
        """Terminate a VM."""
        ...

    def inject_key_pair(self, instance_id: str) -> str:
        """Install a fresh SSH key on the VM and return its private key."""
        ...

    def revoke_key_pair(self, instance_id: str, private_key: str) -> None:
        """Remove the SSH key matching ``private_key`` from the VM."""
        ...
