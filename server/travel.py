"""
Travel: planning a move and tracking it until arrival.

A move is never instant. ``TravelPlanner`` checks that the target is legal and
turns the distance into a :class:`Journey` with fixed start and end times.
From then on the traveler's state is derived purely from the clock:

    idle --begin--> traveling --(now >= end_time)--> arrived --observe--> idle
                    traveling --cancel--> idle (at the interpolated position)

Nothing ticks in the background. ``observe`` is the read that notices an
arrival and commits it, so the first status query after ``end_time`` moves
the traveler onto the destination and clears the journey.

All times are naive UTC datetimes, the same as the database columns.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Tuple

from .config import DEFAULT_BALANCE, GameBalance
from .errors import AlreadyHome, AlreadyThere, AlreadyTraveling, NeedsBoat, NotTraveling
from .proximity import distance, within_range
from .terrain import TerrainField, field_for

Coord = Tuple[int, int]
ORIGIN: Coord = (0, 0)

# (distance, travelling by boat) -> milliseconds
DurationFn = Callable[[float, bool], int]


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def round_coord(x: float, y: float) -> Coord:
    """Half-up rounding onto the integer grid."""
    return (math.floor(x + 0.5), math.floor(y + 0.5))


def travel_duration_ms(dist: float, speed_per_minute: float, min_ms: int = 0) -> int:
    """Monotone in ``dist``; 0 only for a zero distance."""
    if dist <= 0:
        return 0
    return max(1, int(min_ms), math.ceil(dist / speed_per_minute * 60_000))


def format_travel_time(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'}"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours} hour{'' if hours == 1 else 's'}"
    return f"{hours} h {mins} min"


@dataclass(frozen=True)
class Journey:
    from_coord: Coord
    to_coord: Coord
    start_time: dt.datetime
    end_time: dt.datetime

    @property
    def total_duration_ms(self) -> int:
        return (self.end_time - self.start_time) // dt.timedelta(milliseconds=1)

    def progress(self, now: dt.datetime) -> float:
        total = self.end_time - self.start_time
        if total <= dt.timedelta(0):
            return 1.0 if now >= self.end_time else 0.0
        return min(1.0, max(0.0, (now - self.start_time) / total))

    def position_at(self, now: dt.datetime) -> Tuple[float, float]:
        """Exactly ``from_coord`` at start, exactly ``to_coord`` at end."""
        p = self.progress(now)
        fx, fy = self.from_coord
        tx, ty = self.to_coord
        return (fx + (tx - fx) * p, fy + (ty - fy) * p)

    def remaining_ms(self, now: dt.datetime) -> int:
        return max(0, (self.end_time - now) // dt.timedelta(milliseconds=1))

    def as_dict(self) -> dict:
        return {
            "from": {"x": self.from_coord[0], "y": self.from_coord[1]},
            "to": {"x": self.to_coord[0], "y": self.to_coord[1]},
            "startTime": self.start_time.isoformat() + "Z",
            "endTime": self.end_time.isoformat() + "Z",
            "totalDurationMs": self.total_duration_ms,
        }


class TravelState(str, Enum):
    idle = "idle"
    traveling = "traveling"
    arrived = "arrived"


def travel_state(journey: Optional[Journey], now: dt.datetime) -> TravelState:
    if journey is None:
        return TravelState.idle
    if now >= journey.end_time:
        return TravelState.arrived
    return TravelState.traveling


@dataclass(frozen=True)
class Traveler:
    """Committed position plus the journey in flight, if any."""
    position: Coord
    journey: Optional[Journey] = None


@dataclass(frozen=True)
class TravelStatus:
    state: TravelState
    position: Tuple[float, float]
    journey: Optional[Journey] = None
    progress: float = 0.0
    remaining_ms: int = 0

    @property
    def traveling(self) -> bool:
        return self.state == TravelState.traveling

    @property
    def arrived(self) -> bool:
        return self.state == TravelState.arrived

    def as_dict(self) -> dict:
        out = {"traveling": self.traveling, "state": self.state.value}
        if self.traveling and self.journey is not None:
            remaining_minutes = math.ceil(self.remaining_ms / 60_000)
            out.update(self.journey.as_dict())
            out.update(
                position={"x": self.position[0], "y": self.position[1]},
                progress=math.floor(self.progress * 100),
                remainingMs=self.remaining_ms,
                remainingMinutes=remaining_minutes,
                remainingTime=format_travel_time(remaining_minutes),
            )
        else:
            out.update(world_x=self.position[0], world_y=self.position[1])
            if self.arrived:
                out["arrived"] = True
        return out


def observe(traveler: Traveler, now: dt.datetime) -> Tuple[Traveler, TravelStatus]:
    """Status read; an arrived journey is committed onto the destination."""
    journey = traveler.journey
    state = travel_state(journey, now)
    if state == TravelState.idle:
        return traveler, TravelStatus(state, traveler.position)
    if state == TravelState.arrived:
        return Traveler(journey.to_coord), TravelStatus(state, journey.to_coord, journey, 1.0, 0)
    return traveler, TravelStatus(
        state, journey.position_at(now), journey, journey.progress(now), journey.remaining_ms(now)
    )


def begin(traveler: Traveler, journey: Journey) -> Traveler:
    if traveler.journey is not None:
        raise AlreadyTraveling("You are already on the way. Wait until you arrive or cancel the trip.")
    return replace(traveler, journey=journey)


def cancel(traveler: Traveler, now: dt.datetime) -> Traveler:
    """Stop where you are: the interpolated point becomes the position."""
    journey = traveler.journey
    if journey is None:
        raise NotTraveling("You are not travelling right now.")
    return Traveler(round_coord(*journey.position_at(now)))


class TravelPlanner:
    """Turns a requested move into a Journey or a typed rejection."""

    def __init__(self, terrain: Optional[TerrainField] = None,
                 balance: GameBalance = DEFAULT_BALANCE,
                 duration_fn: Optional[DurationFn] = None):
        self.terrain = terrain or field_for(0)
        self.balance = balance
        self.duration_fn = duration_fn or self._default_duration

    def _default_duration(self, dist: float, by_boat: bool) -> int:
        b = self.balance
        speed = b.travel_speed_water if by_boat else b.travel_speed_land
        return travel_duration_ms(dist, speed, b.min_travel_ms)

    def plan_move(self, current: Coord, target: Coord, has_boat: bool, *,
                  active: Optional[Journey] = None,
                  now: Optional[dt.datetime] = None) -> Journey:
        if active is not None:
            raise AlreadyTraveling("You are already on the way. Wait until you arrive or cancel the trip.")
        current = (int(current[0]), int(current[1]))
        target = (int(target[0]), int(target[1]))
        if current == target:
            raise AlreadyThere("You are already at this place.")

        on_water = self.terrain.requires_boat(*target)
        if on_water and not has_boat:
            raise NeedsBoat("You need a boat to go out on the water. Build or buy one.")

        dist = distance(current, target)
        duration = int(self.duration_fn(dist, on_water and has_boat))
        if duration <= 0:
            duration = 1
        start = now or utcnow()
        return Journey(current, target, start, start + dt.timedelta(milliseconds=duration))

    def plan_home(self, current: Coord, home: Optional[Coord], has_boat: bool, *,
                  active: Optional[Journey] = None,
                  now: Optional[dt.datetime] = None) -> Journey:
        target = home if home is not None else ORIGIN
        if active is None and within_range(current, target, self.balance.home_radius):
            raise AlreadyHome("You are already at home.")
        return self.plan_move(current, target, has_boat, active=active, now=now)
