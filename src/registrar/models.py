"""Pydantic models for events and AWS payloads with validation.

These models provide:
1. Typed parsing of EventBridge events and boto3 responses
2. Validation at the boundary (fail fast, fail loudly)
3. Clean transformation back to Route 53 request shapes

AWS field names are kept as aliases so responses can be validated as-is
and requests serialized by alias.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

# =============================================================================
# Lifecycle Events
# =============================================================================


class Task(str, Enum):
    """Reconciliation path selected for an event."""

    REGISTER = "register"
    UNREGISTER = "unregister"


class LifecycleState(str, Enum):
    """EC2 instance states, with OTHER for everything not acted upon."""

    RUNNING = "running"
    STOPPED = "stopped"
    TERMINATED = "terminated"
    OTHER = "other"

    @property
    def task(self) -> Task | None:
        """Task for this state, or None if the event should be ignored."""
        match self:
            case LifecycleState.RUNNING:
                return Task.REGISTER
            case LifecycleState.STOPPED | LifecycleState.TERMINATED:
                return Task.UNREGISTER
            case _:
                return None


class StateChangeDetail(BaseModel):
    """The `detail` section of an EC2 Instance State-change Notification."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    instance_id: str | None = Field(None, alias="instance-id")
    state: LifecycleState

    @field_validator("state", mode="before")
    @classmethod
    def classify_state(cls, v: Any) -> Any:
        if isinstance(v, LifecycleState):
            return v
        if not isinstance(v, str):
            return LifecycleState.OTHER
        try:
            return LifecycleState(v)
        except ValueError:
            return LifecycleState.OTHER

    @model_validator(mode="after")
    def require_instance_id(self) -> StateChangeDetail:
        # Ignored events never look up an instance
        if self.state.task is not None and not self.instance_id:
            raise ValueError(f"instance-id is required for state {self.state.value}")
        return self


class StateChangeEvent(BaseModel):
    """EventBridge event delivered to the Lambda function."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    detail: StateChangeDetail
    detail_type: str | None = Field(None, alias="detail-type")
    source: str | None = None
    id: str | None = None
    time: str | None = None
    region: str | None = None

    @property
    def instance_id(self) -> str | None:
        return self.detail.instance_id

    @property
    def state(self) -> LifecycleState:
        return self.detail.state

    @property
    def task(self) -> Task | None:
        return self.detail.state.task


# =============================================================================
# EC2 Instances
# =============================================================================


class Tag(BaseModel):
    """EC2 resource tag."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    key: str | None = Field(None, alias="Key")
    value: str | None = Field(None, alias="Value")


class IpAssociation(BaseModel):
    """Public address association on a private address entry."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    public_ip: str | None = Field(None, alias="PublicIp")


class PrivateIpAddress(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    private_ip_address: str | None = Field(None, alias="PrivateIpAddress")
    association: IpAssociation | None = Field(None, alias="Association")

    @property
    def public_ip(self) -> str | None:
        return self.association.public_ip if self.association else None


class Ipv6Address(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    ipv6_address: str | None = Field(None, alias="Ipv6Address")


class NetworkInterface(BaseModel):
    """Elastic network interface attached to an instance."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    private_ip_addresses: list[PrivateIpAddress] = Field(
        default_factory=list, alias="PrivateIpAddresses"
    )
    ipv6_addresses: list[Ipv6Address] = Field(default_factory=list, alias="Ipv6Addresses")


class Instance(BaseModel):
    """Subset of a DescribeInstances instance record used for DNS planning."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    instance_id: str | None = Field(None, alias="InstanceId")
    network_interfaces: list[NetworkInterface] = Field(
        default_factory=list, alias="NetworkInterfaces"
    )
    tags: list[Tag] = Field(default_factory=list, alias="Tags")


# =============================================================================
# Route 53
# =============================================================================


class HostedZoneConfig(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    private_zone: bool = Field(False, alias="PrivateZone")


class HostedZone(BaseModel):
    """Route 53 hosted zone.

    `name` is the zone suffix exactly as Route 53 returns it, trailing dot
    included.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str | None = Field(None, alias="Id")
    name: str | None = Field(None, alias="Name")
    config: HostedZoneConfig = Field(default_factory=HostedZoneConfig, alias="Config")

    @property
    def is_private(self) -> bool:
        return self.config.private_zone


class RecordType(str, Enum):
    """Record types written by the registrar."""

    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"


class ChangeAction(str, Enum):
    CREATE = "CREATE"
    DELETE = "DELETE"


class ResourceRecord(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    value: str = Field(alias="Value")


class ResourceRecordSet(BaseModel):
    """Route 53 record set.

    Unknown fields (AliasTarget, SetIdentifier, Weight, ...) are kept so a
    listed set can be echoed back unchanged in a DELETE change.
    """

    model_config = {"extra": "allow", "populate_by_name": True}

    name: str = Field(alias="Name")
    record_type: str = Field(alias="Type")
    ttl: int | None = Field(None, alias="TTL")
    resource_records: list[ResourceRecord] | None = Field(None, alias="ResourceRecords")

    @property
    def values(self) -> list[str]:
        return [record.value for record in self.resource_records or []]

    def to_api(self) -> dict[str, Any]:
        """Convert to the boto3 ResourceRecordSet request shape."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Change(BaseModel):
    """A single entry of a Route 53 change batch."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    action: ChangeAction = Field(alias="Action")
    record_set: ResourceRecordSet = Field(alias="ResourceRecordSet")

    def to_api(self) -> dict[str, Any]:
        """Convert to the boto3 Change request shape."""
        return {"Action": self.action.value, "ResourceRecordSet": self.record_set.to_api()}
