"""
Entity Store Adapter

Typed create/read/update access to batteries, solar arrays, loads and
connections, plus the append-only audit log. Use cases talk to these
stores instead of the ORM managers so that the persistence surface stays
small: create, read by id, partial update, read all.
"""

import logging

from powergrid.domain.graph import NodeType
from powergrid.models import Battery, EventLog, Load, PowerConnection, SolarArray

logger = logging.getLogger(__name__)


class EntityStore:

    def __init__(self, model, kind):
        self.model = model
        self.kind = kind

    def create(self, **fields):
        return self.model.objects.create(**fields).pk

    def read(self, entity_id):
        return self.model.objects.filter(pk=entity_id).first()

    def read_for_update(self, entity_id):
        """Reads and row-locks the record; must be called inside transaction.atomic()."""
        return self.model.objects.select_for_update().filter(pk=entity_id).first()

    def update(self, entity_id, **fields):
        updated = self.model.objects.filter(pk=entity_id).update(**fields)
        if not updated:
            logger.error("Cannot update %s %s that does not exist", self.kind, entity_id)
        return bool(updated)

    def read_all(self):
        return list(self.model.objects.all())


BATTERIES = EntityStore(Battery, "Battery")
SOLAR_ARRAYS = EntityStore(SolarArray, "Solar array")
LOADS = EntityStore(Load, "Load")
CONNECTIONS = EntityStore(PowerConnection, "Connection")

STORES_BY_NODE_TYPE = {
    NodeType.BATTERY.value: BATTERIES,
    NodeType.SOLAR.value: SOLAR_ARRAYS,
    NodeType.LOAD.value: LOADS,
}


def append_event(description):
    """Records an audit entry and returns its id."""
    return EventLog.objects.create(description=description).pk
