"""
Application Use Cases — Grid Entities

Creation, lookup, rate setting and manual charge/discharge for batteries,
solar arrays and loads.

Core guarantees provided:

- Rates are clamped to [0, max_w] and charge to [0, capacity_wh]; callers
  never see a record that violates those bounds.
- Mutations run inside transaction.atomic() with the row locked via
  select_for_update(), so concurrent charge/discharge calls serialize.
- Every creation and mutation is written to the audit log.
- A missing entity raises EntityNotFound; nothing else raises for
  business reasons.
"""

import logging

from django.db import transaction

from powergrid.application.store import (
    BATTERIES,
    LOADS,
    SOLAR_ARRAYS,
    append_event,
)
from powergrid.domain.exceptions import EntityNotFound

logger = logging.getLogger(__name__)


def read_or_raise(store, entity_id):
    record = store.read(entity_id)
    if record is None:
        logger.warning("%s %s does not exist", store.kind, entity_id)
        raise EntityNotFound(store.kind, entity_id)
    return record


def lock_or_raise(store, entity_id):
    """Like read_or_raise, but row-locks the record; call inside transaction.atomic()."""
    record = store.read_for_update(entity_id)
    if record is None:
        logger.warning("%s %s does not exist", store.kind, entity_id)
        raise EntityNotFound(store.kind, entity_id)
    return record


def adjust_battery_charge(battery, delta_wh):
    """
    Adds delta_wh (negative to discharge) to a locked battery and stores it.

    The new charge is clamped to [0, capacity_wh]. Returns the change that
    was actually applied.
    """
    old_charge = battery.charge_wh
    new_charge = min(battery.capacity_wh, max(0.0, old_charge + delta_wh))
    change = new_charge - old_charge

    battery.charge_wh = new_charge
    BATTERIES.update(battery.id, charge_wh=new_charge)

    verb = "CHARGE" if delta_wh >= 0 else "DISCHARGE"
    append_event(f"{verb} battery {battery.id}, {change} Wh, new charge {new_charge} Wh")
    return change


def _set_active_power(store, result_key, entity_id, active_w):
    with transaction.atomic():
        entity = lock_or_raise(store, entity_id)
        new_power = min(entity.max_w, max(0.0, active_w))
        entity.active_w = new_power
        store.update(entity.id, active_w=new_power)
        append_event(f"SET {store.kind.lower()} {entity.id}, power {new_power} W")

    return {"active_w": new_power, result_key: entity.to_record()}


# Batteries

def new_battery(capacity_wh, max_w=0):
    battery_id = BATTERIES.create(capacity_wh=capacity_wh, max_w=max_w)
    append_event(
        f"CREATED new battery with ID {battery_id} and capacity {capacity_wh} Wh"
    )
    logger.info("Created battery %s capacity=%s Wh", battery_id, capacity_wh)
    return BATTERIES.read(battery_id).to_record()


def get_battery(battery_id):
    return read_or_raise(BATTERIES, battery_id).to_record()


def charge_battery(battery_id, add_wh):
    with transaction.atomic():
        battery = lock_or_raise(BATTERIES, battery_id)
        change = adjust_battery_charge(battery, add_wh)

    return {"wh_change": change, "battery": battery.to_record()}


def discharge_battery(battery_id, consume_wh):
    with transaction.atomic():
        battery = lock_or_raise(BATTERIES, battery_id)
        change = adjust_battery_charge(battery, -consume_wh)

    return {"wh_change": change, "battery": battery.to_record()}


def set_battery_power(battery_id, active_w):
    return _set_active_power(BATTERIES, "battery", battery_id, active_w)


# Solar arrays

def new_solar_array(max_w):
    solar_id = SOLAR_ARRAYS.create(max_w=max_w)
    append_event(f"CREATED new solar array with ID {solar_id} and max power {max_w} W")
    logger.info("Created solar array %s max=%s W", solar_id, max_w)
    return SOLAR_ARRAYS.read(solar_id).to_record()


def get_solar_array(solar_id):
    return read_or_raise(SOLAR_ARRAYS, solar_id).to_record()


def set_solar_power(solar_id, active_w):
    return _set_active_power(SOLAR_ARRAYS, "solar_array", solar_id, active_w)


# Loads

def new_load(max_w):
    load_id = LOADS.create(max_w=max_w)
    append_event(f"CREATED new load with ID {load_id} and max power {max_w} W")
    logger.info("Created load %s max=%s W", load_id, max_w)
    return LOADS.read(load_id).to_record()


def get_load(load_id):
    return read_or_raise(LOADS, load_id).to_record()


def set_load_power(load_id, active_w):
    return _set_active_power(LOADS, "load", load_id, active_w)
