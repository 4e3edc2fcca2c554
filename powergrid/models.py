"""
Persistence Models — Power Grid (Django ORM)

This module is the entity store for a small directed energy-distribution
network: solar arrays, batteries and loads joined by connections.

Key decisions:

- Identifiers are opaque, high-entropy strings generated at creation.
- A connection embeds its transfer session (token plus connection and
  expiry timestamps). That session is the source of truth for the
  metered transfer protocol.
- Batteries and loads keep an echo of the last token issued on the
  connection that feeds them. The echo is a cache kept in sync by the
  delivery use case, never the source of truth.
- EventLog is the append-only audit trail, timestamped by the database.
"""

import uuid

from django.db import models

from powergrid.domain.graph import NodeType
from powergrid.domain.transfer import TransferSession

NODE_TYPE_CHOICES = [
    (NodeType.BATTERY.value, "Battery"),
    (NodeType.SOLAR.value, "Solar array"),
    (NodeType.LOAD.value, "Load"),
]


def new_entity_id():
    return uuid.uuid4().hex


class PowerEntity(models.Model):
    """Fields shared by every battery, solar array and load."""

    id = models.CharField(
        primary_key=True,
        max_length=32,
        default=new_entity_id,
        editable=False,
    )

    # Maximum and currently requested rate, 0 <= active_w <= max_w.
    max_w = models.FloatField(default=0)
    active_w = models.FloatField(default=0)

    class Meta:
        abstract = True

    def to_record(self):
        return {"id": self.id, "max_w": self.max_w, "active_w": self.active_w}


class Battery(PowerEntity):
    """
    Storage entity. Invariant: 0 <= charge_wh <= capacity_wh.
    """

    capacity_wh = models.FloatField()
    charge_wh = models.FloatField(default=0)

    # Echo of the token last issued on the connection charging this battery.
    power_token = models.CharField(max_length=32, blank=True, default="")

    def __str__(self):
        return f"Battery {self.id} - {self.charge_wh}/{self.capacity_wh} Wh"

    @property
    def headroom_wh(self):
        return max(0.0, self.capacity_wh - self.charge_wh)

    def to_record(self):
        record = super().to_record()
        record.update(
            capacity_wh=self.capacity_wh,
            charge_wh=self.charge_wh,
            power_token=self.power_token,
        )
        return record


class SolarArray(PowerEntity):

    def __str__(self):
        return f"Solar array {self.id} - {self.active_w}/{self.max_w} W"


class Load(PowerEntity):

    # Echo of the token last issued on the connection feeding this load.
    power_token = models.CharField(max_length=32, blank=True, default="")

    def __str__(self):
        return f"Load {self.id} - {self.active_w}/{self.max_w} W"

    def to_record(self):
        record = super().to_record()
        record["power_token"] = self.power_token
        return record


class PowerConnection(models.Model):
    """
    Directed edge from a source entity to a sink entity.

    The transfer session is either fresh (no token yet) or active
    (token and both timestamps present).
    """

    id = models.CharField(
        primary_key=True,
        max_length=32,
        default=new_entity_id,
        editable=False,
    )

    source_type = models.CharField(max_length=16, choices=NODE_TYPE_CHOICES)
    source_id = models.CharField(max_length=32)
    sink_type = models.CharField(max_length=16, choices=NODE_TYPE_CHOICES)
    sink_id = models.CharField(max_length=32)

    power_token = models.CharField(max_length=32, blank=True, default="")
    connection_time_utc_seconds = models.BigIntegerField(null=True, blank=True)
    expire_time_utc_seconds = models.BigIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return (
            f"Connection {self.id} - {self.source_type} {self.source_id}"
            f" -> {self.sink_type} {self.sink_id}"
        )

    @property
    def transfer_session(self):
        if not self.power_token:
            return None
        return TransferSession(
            token=self.power_token,
            connection_time_utc_seconds=self.connection_time_utc_seconds,
            expire_time_utc_seconds=self.expire_time_utc_seconds,
        )

    def apply_session(self, session):
        self.power_token = session.token or ""
        self.connection_time_utc_seconds = session.connection_time_utc_seconds
        self.expire_time_utc_seconds = session.expire_time_utc_seconds

    def to_record(self):
        return {
            "id": self.id,
            "source_type": self.source_type,
            "source_id": self.source_id,
            "sink_type": self.sink_type,
            "sink_id": self.sink_id,
            "transfer_session": {
                "power_token": self.power_token,
                "connection_time_utc_seconds": self.connection_time_utc_seconds,
                "expire_time_utc_seconds": self.expire_time_utc_seconds,
            },
        }


class EventLog(models.Model):
    """
    Append-only audit entry. created_at is assigned by the database layer.
    """

    description = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Event {self.id} - {self.description[:60]}"
