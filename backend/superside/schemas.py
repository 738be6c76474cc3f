from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServiceStatus(IntEnum):
    ALIVE = 0
    TOMBSTONE = 1
    UNHEALTHY = 2
    UNKNOWN = 3
    DRAINING = 4


class _WireModel(BaseModel):
    # Upstream agents speak CamelCase keys; attributes stay snake_case.
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Port(_WireModel):
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = Field(default=None, alias="Type")
    port: Optional[int] = Field(default=None, alias="Port")
    service_port: Optional[int] = Field(default=None, alias="ServicePort")
    ip: Optional[str] = Field(default=None, alias="IP")


class Service(_WireModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, alias="ID")
    name: str = Field(..., alias="Name")
    image: Optional[str] = Field(default=None, alias="Image")
    created: Optional[str] = Field(default=None, alias="Created")
    hostname: Optional[str] = Field(default=None, alias="Hostname")
    ports: Tuple[Port, ...] = Field(default=(), alias="Ports")
    updated: Optional[str] = Field(default=None, alias="Updated")
    proxy_mode: Optional[str] = Field(default=None, alias="ProxyMode")
    status: int = Field(..., alias="Status", description="ServiceStatus code")

    @field_validator("ports", mode="before")
    @classmethod
    def _null_ports(cls, v):
        # Agents encode a service without ports as "Ports": null.
        return () if v is None else v


class ChangeEvent(_WireModel):
    service: Service = Field(..., alias="Service")
    previous_status: int = Field(..., alias="PreviousStatus")
    time: Optional[str] = Field(default=None, alias="Time")


class ServicesState(_WireModel):
    # Only the identity of the reporting node is kept; the full server dump is dropped.
    model_config = ConfigDict(extra="ignore")

    cluster_name: str = Field(default="", alias="ClusterName")
    hostname: Optional[str] = Field(default=None, alias="Hostname")


class StateChangedEvent(_WireModel):
    """Body POSTed by an agent whenever one of its services changes status."""

    state: ServicesState = Field(..., alias="State")
    change_event: ChangeEvent = Field(..., alias="ChangeEvent")


class Notification(_WireModel):
    event: ChangeEvent = Field(..., alias="Event")
    cluster_name: str = Field(..., alias="ClusterName")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ApiMessage(_WireModel):
    message: str = Field(..., alias="Message")


class ApiStatus(_WireModel):
    message: str = Field(..., alias="Message")
    last_changed: Optional[datetime] = Field(default=None, alias="LastChanged")


def notification_from_event(event: StateChangedEvent) -> Notification:
    return Notification(event=event.change_event, cluster_name=event.state.cluster_name)
