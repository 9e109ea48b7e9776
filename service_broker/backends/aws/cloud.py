"""EC2 cloud client. Launches VMs and manages SSH keys on them via SSM."""

from __future__ import annotations

import logging
import shlex
import uuid

import boto3
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from service_broker.core.interfaces import CloudClientError

logger = logging.getLogger(__name__)

SSM_DOCUMENT_NAME = "AWS-RunShellScript"
KEY_NAME_PREFIX = "service-broker"


class EC2CloudClient:
    def __init__(
        self,
        ami_id: str,
        region_name: str = "us-east-1",
        instance_type: str = "t2.micro",
        subnet_id: str = "",
        security_group_id: str = "",
        instance_profile_arn: str = "",
        ssh_user: str = "ec2-user",
        endpoint_url: str | None = None,
    ):
        kwargs = {"region_name": region_name}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ec2 = boto3.client("ec2", **kwargs)
        self._ssm = boto3.client("ssm", **kwargs)
        self._ami_id = ami_id
        self._instance_type = instance_type
        self._subnet_id = subnet_id
        self._security_group_id = security_group_id
        self._instance_profile_arn = instance_profile_arn
        self._ssh_user = ssh_user

    def create_instance(self) -> str:
        params = {
            "ImageId": self._ami_id,
            "InstanceType": self._instance_type,
            "MinCount": 1,
            "MaxCount": 1,
            "TagSpecifications": [
                {
                    "ResourceType": "instance",
                    "Tags": [{"Key": "Name", "Value": KEY_NAME_PREFIX}],
                }
            ],
        }
        if self._subnet_id:
            params["SubnetId"] = self._subnet_id
        if self._security_group_id:
            params["SecurityGroupIds"] = [self._security_group_id]
        # SSM needs an instance profile to reach the VM for key management.
        if self._instance_profile_arn:
            params["IamInstanceProfile"] = {"Arn": self._instance_profile_arn}

        try:
            resp = self._ec2.run_instances(**params)
        except (BotoCoreError, ClientError) as exc:
            raise CloudClientError(f"run_instances failed: {exc}") from exc

        instance_id = resp["Instances"][0]["InstanceId"]
        logger.info("Launched EC2 instance %s", instance_id)
        return instance_id

    def get_instance_state(self, instance_id: str) -> str:
        try:
            resp = self._ec2.describe_instances(InstanceIds=[instance_id])
        except (BotoCoreError, ClientError) as exc:
            raise CloudClientError(f"describe_instances failed: {exc}") from exc

        reservations = resp.get("Reservations") or []
        if not reservations or not reservations[0].get("Instances"):
            raise CloudClientError(f"instance {instance_id} not found")
        return reservations[0]["Instances"][0]["State"]["Name"]

    def delete_instance(self, instance_id: str) -> None:
        try:
            self._ec2.terminate_instances(InstanceIds=[instance_id])
        except (BotoCoreError, ClientError) as exc:
            raise CloudClientError(f"terminate_instances failed: {exc}") from exc
        logger.info("Terminating EC2 instance %s", instance_id)

    def inject_key_pair(self, instance_id: str) -> str:
        """Generate a key pair with EC2 and authorize its public half on the VM.

        The EC2 key-pair registration is deleted once the public key is on the
        instance; only the returned private key grants access afterwards.
        """
        key_name = f"{KEY_NAME_PREFIX}-{instance_id}-{uuid.uuid4().hex[:8]}"
        try:
            created = self._ec2.create_key_pair(KeyName=key_name, KeyType="rsa")
            described = self._ec2.describe_key_pairs(KeyNames=[key_name], IncludePublicKey=True)
        except (BotoCoreError, ClientError) as exc:
            raise CloudClientError(f"key pair creation failed: {exc}") from exc

        private_key = created["KeyMaterial"]
        public_key = described["KeyPairs"][0]["PublicKey"].strip()

        try:
            self._run_commands(instance_id, self._authorize_commands(public_key, key_name))
        finally:
            self._delete_key_pair(key_name)

        return private_key

    def revoke_key_pair(self, instance_id: str, private_key: str) -> None:
        """Remove the authorized key derived from ``private_key`` on the VM."""
        self._run_commands(instance_id, self._revoke_commands(private_key))

    def _authorized_keys_path(self) -> str:
        return f"/home/{self._ssh_user}/.ssh/authorized_keys"

    def _authorize_commands(self, public_key: str, key_name: str) -> list[str]:
        path = self._authorized_keys_path()
        entry = shlex.quote(f"{public_key} {key_name}")
        return [
            "set -eu",
            f"install -d -m 700 -o {self._ssh_user} -g {self._ssh_user} $(dirname {path})",
            f"echo {entry} >> {path}",
            f"chown {self._ssh_user}:{self._ssh_user} {path}",
            f"chmod 600 {path}",
        ]

    def _revoke_commands(self, private_key: str) -> list[str]:
        path = self._authorized_keys_path()
        return [
            "set -eu",
            "keyfile=$(mktemp)",
            "trap 'rm -f \"$keyfile\"' EXIT",
            f"printf '%s\\n' {shlex.quote(private_key.strip())} > \"$keyfile\"",
            "pub=$(ssh-keygen -y -f \"$keyfile\" | awk '{print $2}')",
            f"grep -v -F \"$pub\" {path} > \"$keyfile.keep\" || true",
            f"cat \"$keyfile.keep\" > {path}",
            "rm -f \"$keyfile.keep\"",
        ]

    def _run_commands(self, instance_id: str, commands: list[str]) -> None:
        """Run a shell script on the VM through SSM and wait for it to finish."""
        try:
            resp = self._ssm.send_command(
                DocumentName=SSM_DOCUMENT_NAME,
                InstanceIds=[instance_id],
                Parameters={"commands": commands},
                Comment="service broker key management",
            )
            command_id = resp["Command"]["CommandId"]
            waiter = self._ssm.get_waiter("command_executed")
            waiter.wait(
                CommandId=command_id,
                InstanceId=instance_id,
                WaiterConfig={"Delay": 2, "MaxAttempts": 30},
            )
        except (BotoCoreError, ClientError, WaiterError) as exc:
            raise CloudClientError(f"SSM command on {instance_id} failed: {exc}") from exc

    def _delete_key_pair(self, key_name: str) -> None:
        try:
            self._ec2.delete_key_pair(KeyName=key_name)
        except (BotoCoreError, ClientError):
            logger.warning("Failed to delete EC2 key pair %s", key_name, exc_info=True)
