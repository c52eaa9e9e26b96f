"""EC2 and Route 53 gateways over boto3 clients.

The gateways are the only code that talks to AWS. They hold their boto3
client for the life of the process and carry no other state, so one
instance can serve every warm invocation of the function.

Errors from boto3 (ClientError, BotoCoreError) are not caught here; the
reconciler decides how a failed call ends the invocation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import boto3

from .config import Config
from .models import Change, HostedZone, Instance, ResourceRecordSet

logger = logging.getLogger(__name__)


class InstanceDirectory:
    """Looks up EC2 instances by id."""

    def __init__(self, ec2_client: Any) -> None:
        """Initialize with a boto3 EC2 client."""
        self._client = ec2_client

    def describe_instance(self, instance_id: str, tag_key: str) -> Instance | None:
        """Describe one instance, restricted to instances carrying a tag key.

        Args:
            instance_id: EC2 instance id.
            tag_key: Only instances with a tag of this key are returned.

        Returns:
            The first matching instance, or None if the instance does not
            carry the tag.
        """
        response = self._client.describe_instances(
            InstanceIds=[instance_id],
            Filters=[{"Name": "tag-key", "Values": [tag_key]}],
        )

        instances = [
            instance
            for reservation in response.get("Reservations") or []
            for instance in reservation.get("Instances") or []
        ]
        if not instances:
            return None

        return Instance.model_validate(instances[0])


class ZoneStore:
    """Reads and changes Route 53 hosted zones."""

    def __init__(self, route53_client: Any) -> None:
        """Initialize with a boto3 Route 53 client."""
        self._client = route53_client

    def get_zone(self, zone_id: str) -> HostedZone:
        """Fetch a hosted zone.

        The id is set from the argument since callers address the zone by
        the id they were given, whatever form GetHostedZone echoes.
        """
        response = self._client.get_hosted_zone(Id=zone_id)
        zone = HostedZone.model_validate(response.get("HostedZone") or {})
        return zone.model_copy(update={"id": zone_id})

    def list_record_sets(self, zone_id: str) -> list[ResourceRecordSet]:
        """List the record sets of a zone in a single call.

        Only the first page is read.
        """
        response = self._client.list_resource_record_sets(HostedZoneId=zone_id)

        if response.get("IsTruncated"):
            logger.warning(
                "Record set listing truncated, only the first page is considered",
                extra={"zone_id": zone_id},
            )

        return [
            ResourceRecordSet.model_validate(record_set)
            for record_set in response.get("ResourceRecordSets") or []
        ]

    def apply_change_batch(self, zone_id: str, changes: Sequence[Change]) -> dict[str, Any]:
        """Submit changes as one atomic batch.

        Returns:
            The raw ChangeResourceRecordSets response.
        """
        return self._client.change_resource_record_sets(
            HostedZoneId=zone_id,
            ChangeBatch={"Changes": [change.to_api() for change in changes]},
        )


def create_clients(config: Config) -> tuple[InstanceDirectory, ZoneStore]:
    """Build the gateways with fresh boto3 clients."""
    session = boto3.Session(region_name=config.region)

    logger.info("Creating AWS clients", extra={"region": session.region_name})

    return (
        InstanceDirectory(session.client("ec2")),
        ZoneStore(session.client("route53")),
    )
