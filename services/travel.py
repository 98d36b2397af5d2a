"""Travel against the player store.

Maps the four ``travel_*`` columns onto :class:`server.travel.Traveler` and
back. The "at most one journey" rule is enforced by the database: a move only
claims the row while ``travel_end_time IS NULL``, and arrival and cancel only
clear it while ``travel_end_time`` still equals the journey they observed.
"""
import logging
from typing import Optional, Tuple

import sqlalchemy as sa

from app.models import db, Character
from server.errors import (
    AlreadyTraveling, ContentionFailure, InvariantViolation, NotTraveling, ValidationRejection,
)
from server.proximity import distance
from server.travel import (
    Journey, Traveler, TravelPlanner, TravelStatus, cancel, format_travel_time, observe, round_coord,
    utcnow,
)
from services import players

logger = logging.getLogger(__name__)


def traveler_of(ch: Character) -> Traveler:
    cols = (ch.travel_target_x, ch.travel_target_y, ch.travel_start_time, ch.travel_end_time)
    position = (ch.world_x, ch.world_y)
    if all(c is None for c in cols):
        return Traveler(position)
    if any(c is None for c in cols):
        logger.error("invariant_partial_journey character_id=%s cols=%r", ch.character_id, cols)
        raise InvariantViolation("Character has a half-written journey")
    return Traveler(position, Journey(position, (ch.travel_target_x, ch.travel_target_y),
                                      ch.travel_start_time, ch.travel_end_time))


def _clear_journey(character_id: str, journey: Journey, position) -> int:
    res = db.session.execute(
        sa.update(Character)
        .where(Character.character_id == character_id,
               Character.travel_end_time == journey.end_time)
        .values(world_x=position[0], world_y=position[1],
                travel_target_x=None, travel_target_y=None,
                travel_start_time=None, travel_end_time=None)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount


def settle(ch: Character, now=None) -> Tuple[Traveler, TravelStatus]:
    """Observe the journey and commit the arrival if it is due."""
    now = now or utcnow()
    before = traveler_of(ch)
    after, status = observe(before, now)
    if after is not before:
        try:
            if _clear_journey(ch.character_id, before.journey, after.position):
                logger.info("travel_arrived character_id=%s to=%s", ch.character_id, after.position)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        # a concurrent reader may have committed first; the result is the same
        db.session.refresh(ch)
    return after, status


def status(character_id: str, user_id: Optional[str] = None, now=None) -> TravelStatus:
    ch = players.get_character(character_id, user_id)
    _, st = settle(ch, now)
    return st


def current_position(ch: Character, now=None) -> Tuple[int, int]:
    """Where proximity checks place the character: interpolated and rounded in flight."""
    _, st = settle(ch, now)
    if st.traveling:
        return round_coord(*st.position)
    return (int(st.position[0]), int(st.position[1]))


def peek_position(ch: Character, now=None) -> Tuple[int, int]:
    """Same point as ``current_position`` but never writes; used for other players."""
    now = now or utcnow()
    journey = traveler_of(ch).journey
    if journey is None:
        return (int(ch.world_x), int(ch.world_y))
    return round_coord(*journey.position_at(now))


def _claim(ch: Character, journey: Journey) -> None:
    res = db.session.execute(
        sa.update(Character)
        .where(Character.character_id == ch.character_id,
               Character.travel_end_time.is_(None),
               Character.world_x == journey.from_coord[0],
               Character.world_y == journey.from_coord[1])
        .values(travel_target_x=journey.to_coord[0], travel_target_y=journey.to_coord[1],
                travel_start_time=journey.start_time, travel_end_time=journey.end_time)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.session.rollback()
        db.session.refresh(ch)
        if ch.travel_end_time is not None:
            raise AlreadyTraveling("You are already on the way. Wait until you arrive or cancel the trip.")
        raise ContentionFailure("Your position changed in the meantime, try again")
    db.session.commit()


def _planner() -> TravelPlanner:
    return TravelPlanner(players.terrain(), players.balance())


def _journey_response(journey: Journey, message: str) -> dict:
    minutes = -(-journey.total_duration_ms // 60_000)
    out = journey.as_dict()
    out.update(
        ok=True,
        traveling=True,
        message=message,
        distance=round(distance(journey.from_coord, journey.to_coord)),
        travelMinutes=minutes,
        travelTime=format_travel_time(minutes),
        onWater=players.terrain().requires_boat(*journey.to_coord),
    )
    return out


def move_to(character_id: str, target, user_id: Optional[str] = None, now=None) -> dict:
    now = now or utcnow()
    limit = players.balance().move_limit
    if abs(target[0]) > limit or abs(target[1]) > limit:
        raise ValidationRejection(f"Coordinates must lie within +/-{limit}", fields=["world_x", "world_y"])
    ch = players.get_character(character_id, user_id)
    traveler, _ = settle(ch, now)
    journey = _planner().plan_move(traveler.position, target, players.has_boat(ch.character_id),
                                   active=traveler.journey, now=now)
    _claim(ch, journey)
    logger.info("travel_start character_id=%s from=%s to=%s duration_ms=%s",
                ch.character_id, journey.from_coord, journey.to_coord, journey.total_duration_ms)
    return _journey_response(journey, f"Travelling to ({journey.to_coord[0]}, {journey.to_coord[1]})")


def travel_home(character_id: str, user_id: Optional[str] = None, now=None) -> dict:
    now = now or utcnow()
    ch = players.get_character(character_id, user_id)
    traveler, _ = settle(ch, now)
    journey = _planner().plan_home(traveler.position, ch.home, players.has_boat(ch.character_id),
                                   active=traveler.journey, now=now)
    _claim(ch, journey)
    logger.info("travel_home character_id=%s to=%s duration_ms=%s",
                ch.character_id, journey.to_coord, journey.total_duration_ms)
    return _journey_response(journey, "Heading home")


def cancel_travel(character_id: str, user_id: Optional[str] = None, now=None) -> dict:
    now = now or utcnow()
    ch = players.get_character(character_id, user_id)
    traveler, _ = settle(ch, now)
    stopped = cancel(traveler, now)
    try:
        cleared = _clear_journey(ch.character_id, traveler.journey, stopped.position)
        if not cleared:
            db.session.rollback()
            db.session.refresh(ch)
            if ch.travel_end_time is None:
                raise NotTraveling("You are not travelling right now.")
            raise ContentionFailure("Your journey changed in the meantime, try again")
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("travel_cancelled character_id=%s at=%s", ch.character_id, stopped.position)
    return {
        "ok": True,
        "message": "Journey cancelled",
        "world_x": stopped.position[0],
        "world_y": stopped.position[1],
    }
