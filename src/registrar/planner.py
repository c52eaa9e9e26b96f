"""Record planning for instance registration and unregistration.

Both paths are pure: they take an instance's state and the target zone's
configuration and return the Route 53 changes to submit as one batch.

Every record the registrar manages is joined to its instance through the
canonical name `<instance-id>.<zone-suffix>`:
- register creates A/AAAA sets named after it, plus an optional CNAME
  pointing at it
- unregister deletes every set named after it or pointing at it
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .config import RECORD_TTL_SECONDS
from .models import (
    Change,
    ChangeAction,
    HostedZone,
    Instance,
    RecordType,
    ResourceRecord,
    ResourceRecordSet,
)
from .tags import normalize_label, resolve_label

logger = logging.getLogger(__name__)


def canonical_name(instance_id: str | None, zone_suffix: str | None) -> str:
    """Join an instance id and a zone suffix.

    No dot is added beyond whatever the suffix already carries.
    """
    return f"{instance_id}.{zone_suffix}"


def cname_name(label: str, zone_suffix: str | None) -> str:
    """Fully-qualified CNAME name for an instance label, ending in exactly one dot."""
    return f"{normalize_label(label)}.{str(zone_suffix).rstrip('.')}."


def _same_dns_name(a: str, b: str) -> bool:
    """Compare DNS names ignoring case and the root dot."""
    return a.rstrip(".").lower() == b.rstrip(".").lower()


def _record_set(name: str, record_type: RecordType, values: list[str]) -> ResourceRecordSet:
    return ResourceRecordSet(
        name=name,
        record_type=record_type.value,
        ttl=RECORD_TTL_SECONDS,
        resource_records=[ResourceRecord(value=value) for value in values],
    )


def collect_addresses(instance: Instance) -> tuple[list[str], list[str], list[str]]:
    """Gather addresses across all network interfaces.

    Returns:
        Tuple of (private IPv4, public IPv4, IPv6) addresses, in interface order.
    """
    private_v4: list[str] = []
    public_v4: list[str] = []
    ipv6: list[str] = []

    for eni in instance.network_interfaces:
        for address in eni.private_ip_addresses:
            if address.private_ip_address:
                private_v4.append(address.private_ip_address)
            if address.public_ip:
                public_v4.append(address.public_ip)

        for address in eni.ipv6_addresses:
            if address.ipv6_address:
                ipv6.append(address.ipv6_address)

    return private_v4, public_v4, ipv6


def plan_registration(instance: Instance, zone: HostedZone) -> list[Change]:
    """Compute the record sets to create for a running instance.

    Private zones get one A set of private addresses. Public zones get an A
    set of public addresses and an AAAA set of IPv6 addresses, each only if
    non-empty. A CNAME from the instance label to the canonical name is
    added only when at least one address set exists.

    Args:
        instance: Instance with network interfaces and tags.
        zone: Target hosted zone.

    Returns:
        CREATE changes, empty if the instance has nothing to register.
    """
    private_v4, public_v4, ipv6 = collect_addresses(instance)
    name = canonical_name(instance.instance_id, zone.name)

    sets: list[ResourceRecordSet] = []
    if zone.is_private:
        if private_v4:
            sets.append(_record_set(name, RecordType.A, private_v4))
    else:
        if public_v4:
            sets.append(_record_set(name, RecordType.A, public_v4))
        if ipv6:
            sets.append(_record_set(name, RecordType.AAAA, ipv6))

    if not sets:
        logger.debug(
            "No addresses to register",
            extra={"instance_id": instance.instance_id, "private_zone": zone.is_private},
        )
        return []

    label = resolve_label(instance.tags)
    if label:
        sets.append(_record_set(cname_name(label, zone.name), RecordType.CNAME, [name]))

    return [Change(action=ChangeAction.CREATE, record_set=record_set) for record_set in sets]


def plan_unregistration(
    instance_id: str | None,
    zone: HostedZone,
    record_sets: Iterable[ResourceRecordSet],
) -> list[Change]:
    """Compute the record sets to delete for a stopped or terminated instance.

    A set is deleted when it is named after the canonical name or when any of
    its values is the canonical name. Sets without values are never deleted;
    this check runs first, so an empty set named after the instance is kept.

    Args:
        instance_id: Instance identifier.
        zone: Hosted zone the records were listed from.
        record_sets: Every record set currently in the zone.

    Returns:
        DELETE changes echoing the matching sets unchanged.
    """
    name = canonical_name(instance_id, zone.name)

    changes: list[Change] = []
    for record_set in record_sets:
        values = record_set.values
        if not values:
            continue
        if _same_dns_name(record_set.name, name) or any(
            _same_dns_name(value, name) for value in values
        ):
            changes.append(Change(action=ChangeAction.DELETE, record_set=record_set))

    return changes
