"""
Domain Rule — Metered, Token-Gated Energy Transfer

Converts a declared power rate and elapsed wall-clock time into a bounded
energy quantity for one connection.

Every call mints a new token. Presenting the token currently on record
authorizes exactly one draw covering the time since the session was last
advanced; any other token is a zero-energy no-op that leaves the session
untouched. Sessions expire after a fixed window and are re-armed by the
next caller holding the current token.

This module is pure: "now" is always passed in, nothing here touches the
database or the clock.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 60.0 * 60.0
DEFAULT_WINDOW_SECONDS = 10 * 60

NOTE_FIRST_CONTACT = "First usage, new session issued"
NOTE_INCORRECT_TOKEN = "Incorrect power token"
NOTE_EXPIRED_TOKEN = "Expired power token, new session issued"
NOTE_NO_TIME_ELAPSED = "No time has passed"
NOTE_TRANSFERRED = "Energy transferred"


def new_power_token():
    return uuid.uuid4().hex


@dataclass(frozen=True)
class TransferSession:
    """Last issued token of a connection and the window it is valid in."""

    token: Optional[str] = None
    connection_time_utc_seconds: Optional[int] = None
    expire_time_utc_seconds: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return bool(
            self.token
            and self.connection_time_utc_seconds is not None
            and self.expire_time_utc_seconds is not None
        )

    @classmethod
    def arm(cls, now: int, window_seconds: int) -> "TransferSession":
        return cls(
            token=new_power_token(),
            connection_time_utc_seconds=now,
            expire_time_utc_seconds=now + window_seconds,
        )


@dataclass(frozen=True)
class TransferCapacity:
    """Power (W) and energy (Wh) limits for a single draw."""

    rate_w: float
    energy_wh: float


@dataclass(frozen=True)
class EnergyTransfer:
    energy_wh: float
    duration_hours: float
    rate_w: float
    session: TransferSession
    note: str

    @property
    def moved_energy(self) -> bool:
        return self.energy_wh > 0


def _no_transfer(session, note):
    return EnergyTransfer(
        energy_wh=0.0,
        duration_hours=0.0,
        rate_w=0.0,
        session=session,
        note=note,
    )


def calculate_transfer(
    session: Optional[TransferSession],
    now: int,
    presented_token: Optional[str],
    capacity: TransferCapacity,
    window_seconds: int = DEFAULT_WINDOW_SECONDS,
) -> EnergyTransfer:
    """
    Calculates how much energy a connection may move right now.

    Outcomes:
    - No session on record: zero energy, a fresh session is issued.
    - Token mismatch: zero energy, the recorded session is returned unchanged.
    - Session expired: zero energy, a fresh session is issued.
    - No time elapsed since the session was advanced: zero energy, unchanged.
    - Otherwise: min(rate * hours, energy cap) is moved and the session advances.

    The returned session is what the caller must persist.
    """
    rearmed = TransferSession.arm(now, window_seconds)

    if session is None or not session.is_active:
        logger.info("First usage of connection, issuing token")
        return _no_transfer(rearmed, NOTE_FIRST_CONTACT)

    if presented_token != session.token:
        logger.info("Incorrect power token presented, session kept")
        return _no_transfer(session, NOTE_INCORRECT_TOKEN)

    if now > session.expire_time_utc_seconds:
        logger.info(
            "Expired power token: now=%s expired_at=%s",
            now, session.expire_time_utc_seconds,
        )
        return _no_transfer(rearmed, NOTE_EXPIRED_TOKEN)

    duration_hours = (now - session.connection_time_utc_seconds) / SECONDS_PER_HOUR
    if duration_hours <= 0:
        logger.info("No time has passed since %s", session.connection_time_utc_seconds)
        return _no_transfer(session, NOTE_NO_TIME_ELAPSED)

    energy_wh = max(0.0, min(capacity.rate_w * duration_hours, capacity.energy_wh))
    # Effective rate, throttled below the nominal rate when the energy cap binds.
    rate_w = energy_wh / duration_hours

    return EnergyTransfer(
        energy_wh=energy_wh,
        duration_hours=duration_hours,
        rate_w=rate_w,
        session=rearmed,
        note=NOTE_TRANSFERRED,
    )
