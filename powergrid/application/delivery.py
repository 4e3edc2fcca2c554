"""
Application Use Case — Energy Delivery

Pushes energy along connections using the token-gated transfer rule.

Two entry points share one per-connection step:

- take_power(): a single metered draw on one connection, with the token
  presented by the caller.
- deliver_all(): a sweep over every connection, sinks first, presenting
  the token echoed on each sink's own record. Triggered by a request or by
  an external scheduler running the deliver_power management command.

Core guarantees provided:

- At most one non-zero transfer per token: the session recorded on the
  connection is the only thing that authorizes a draw.
- Each step runs inside transaction.atomic() with the connection and the
  battery row locked via select_for_update().
- A cycle aborts the sweep before anything is delivered.
- A missing entity or connection skips that step only.
- "now" is injectable so callers and tests never wait on the clock.
"""

import logging
from dataclasses import asdict, dataclass

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from powergrid.application.store import (
    BATTERIES,
    CONNECTIONS,
    LOADS,
    SOLAR_ARRAYS,
    append_event,
)
from powergrid.application.use_cases import (
    adjust_battery_charge,
    lock_or_raise,
    read_or_raise,
)
from powergrid.domain.exceptions import EntityNotFound, GraphCycleDetected, InvalidConnection
from powergrid.domain.graph import NodeType, build_graph, has_cycle, traverse
from powergrid.domain.transfer import (
    DEFAULT_WINDOW_SECONDS,
    TransferCapacity,
    calculate_transfer,
)

logger = logging.getLogger(__name__)

CHARGE = (NodeType.SOLAR, NodeType.BATTERY)
DISCHARGE = (NodeType.BATTERY, NodeType.LOAD)


def current_utc_seconds():
    return int(timezone.now().timestamp())


def _window_seconds():
    return getattr(settings, "POWERGRID_TRANSFER_WINDOW_SECONDS", DEFAULT_WINDOW_SECONDS)


@dataclass
class DeliveryStats:
    battery_charged_with_solar_count: int = 0
    battery_discharged_with_load_count: int = 0
    all_succeeded: bool = True

    def to_record(self):
        return asdict(self)


def transfer_on_connection(connection_id, presented_token, now):
    """
    Runs one metered transfer on a connection and applies its outcome.

    SOLAR -> BATTERY charges the battery, BATTERY -> LOAD discharges it.
    The connection's new session and the sink's token echo are saved
    whatever the outcome, and an audit entry is written.
    """
    with transaction.atomic():
        connection = lock_or_raise(CONNECTIONS, connection_id)
        pair = (connection.source_type, connection.sink_type)

        if pair == CHARGE:
            solar = read_or_raise(SOLAR_ARRAYS, connection.source_id)
            battery = sink = lock_or_raise(BATTERIES, connection.sink_id)
            capacity = TransferCapacity(rate_w=solar.active_w, energy_wh=battery.headroom_wh)
            sink_store = BATTERIES
            direction = 1
        elif pair == DISCHARGE:
            battery = lock_or_raise(BATTERIES, connection.source_id)
            sink = lock_or_raise(LOADS, connection.sink_id)
            capacity = TransferCapacity(
                rate_w=sink.active_w, energy_wh=max(0.0, battery.charge_wh)
            )
            sink_store = LOADS
            direction = -1
        else:
            raise InvalidConnection(
                f"Cannot transfer energy from {connection.source_type} "
                f"to {connection.sink_type}"
            )

        old_token = connection.power_token
        transfer = calculate_transfer(
            connection.transfer_session,
            now,
            presented_token,
            capacity,
            window_seconds=_window_seconds(),
        )

        if transfer.moved_energy:
            adjust_battery_charge(battery, direction * transfer.energy_wh)

        connection.apply_session(transfer.session)
        CONNECTIONS.update(
            connection.id,
            power_token=connection.power_token,
            connection_time_utc_seconds=connection.connection_time_utc_seconds,
            expire_time_utc_seconds=connection.expire_time_utc_seconds,
        )
        sink_store.update(sink.id, power_token=connection.power_token)

        append_event(
            f"TRANSFER energy with connection {connection.id}, "
            f"from {connection.source_type.lower()} {connection.source_id}, "
            f"to {connection.sink_type.lower()} {connection.sink_id}, "
            f"transferred {transfer.energy_wh} Wh, "
            f"power {transfer.rate_w} W, "
            f"duration {transfer.duration_hours} h, "
            f"used token {presented_token or ''}, "
            f"old token {old_token}, "
            f"connection UTC time {transfer.session.connection_time_utc_seconds}, "
            f"expire UTC time {transfer.session.expire_time_utc_seconds}, "
            f"new token {transfer.session.token}, "
            f"note {transfer.note}"
        )

    logger.info(
        "Transfer on connection %s: %s Wh at %s W (%s)",
        connection_id, transfer.energy_wh, transfer.rate_w, transfer.note,
    )
    return transfer


def take_power(connection_id, token, now=None):
    """
    Draws energy through one connection with a caller-presented token.

    The first call (no token on record) always returns 0 Wh and a token.
    Presenting that token later returns the energy accumulated since,
    bounded by the source rate and the storage limit, plus the next token.
    """
    now = current_utc_seconds() if now is None else now
    transfer = transfer_on_connection(connection_id, token, now)
    return {
        "connection_id": connection_id,
        "energy_wh": transfer.energy_wh,
        "duration_hours": transfer.duration_hours,
        "rate_w": transfer.rate_w,
        "token": transfer.session.token,
        "connection_time_utc_seconds": transfer.session.connection_time_utc_seconds,
        "expire_time_utc_seconds": transfer.session.expire_time_utc_seconds,
        "note": transfer.note,
    }


def deliver_all(now=None):
    """
    Sweeps every connection sinks-first and returns DeliveryStats.

    Only SOLAR -> BATTERY and BATTERY -> LOAD steps deliver energy; other
    nodes are passed over. Raises GraphCycleDetected before any delivery
    if the connection graph has a loop.
    """
    now = current_utc_seconds() if now is None else now
    graph = build_graph(CONNECTIONS.read_all())
    if has_cycle(graph):
        logger.error("Found unexpected cycle in connection graph, sweep aborted")
        raise GraphCycleDetected()

    stats = DeliveryStats()

    def visit(node):
        source = graph.source_of(node)
        if source is None:
            return True

        pair = (source.type, node.type)
        if pair == CHARGE:
            sink_store = BATTERIES
        elif pair == DISCHARGE:
            sink_store = LOADS
        else:
            return True

        sink = sink_store.read(node.id)
        if sink is None:
            logger.error(
                "Expecting %s %s for connection %s",
                sink_store.kind, node.id, node.source_connection_id,
            )
            return False

        try:
            transfer_on_connection(node.source_connection_id, sink.power_token, now)
        except EntityNotFound as exc:
            logger.warning("Skipping connection %s: %s", node.source_connection_id, exc)
            return False

        if pair == CHARGE:
            stats.battery_charged_with_solar_count += 1
        else:
            stats.battery_discharged_with_load_count += 1
        return True

    stats.all_succeeded = traverse(graph, visit)
    logger.info(
        "Delivery sweep done: charged=%d discharged=%d all_succeeded=%s",
        stats.battery_charged_with_solar_count,
        stats.battery_discharged_with_load_count,
        stats.all_succeeded,
    )
    return stats
