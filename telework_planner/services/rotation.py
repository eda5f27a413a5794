# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation logic - pure computation, no side effects.

Picks who works remotely on Tuesday, Wednesday and Thursday of a given ISO
week. All randomness is seeded from the week identity, so the same week,
roster and previous week always give the same answer.

Two rules shape the pick:
  * no-repeat (soft): people remote last week sit this one out, unless that
    leaves fewer than three candidates.
  * placeholder cap (hard): at most one reserved slot per week, repaired
    after selection whatever path produced it.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from telework_planner.core.roster import get_member_by_name
from telework_planner.models.domain import RosterMember
from telework_planner.services.calendar_math import WeekIdentity
from telework_planner.services.prng import seeded_float, seeded_shuffle

DAY_NAMES: tuple[str, ...] = ("Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi")
ELIGIBLE_DAYS: tuple[str, ...] = ("Mardi", "Mercredi", "Jeudi")
REMOTE_SLOTS = len(ELIGIBLE_DAYS)

# Offsets applied to the week seed so each draw uses its own stream.
PLACEHOLDER_SHUFFLE_OFFSET = 1000
DAY_SHUFFLE_OFFSET = 500
REPAIR_SHUFFLE_OFFSET = 5000
PLACEHOLDER_COIN_OFFSET = 9999


@dataclass(frozen=True)
class RotationResult:
    """Outcome of one week's pick, plus what had to be bent to get it."""

    week: WeekIdentity
    seed: int
    assignment: dict[str, str]
    excluded: frozenset[str] = frozenset()
    no_repeat_dropped: bool = False
    placeholders_dropped: tuple[str, ...] = field(default_factory=tuple)


def rotation_seed(week: WeekIdentity) -> int:
    return week.week_number + week.year * 1000


def previous_remote_ids(
    previous_schedule: Optional[dict[str, Any]],
    roster: list[RosterMember],
) -> frozenset[str]:
    """Ids of roster members marked remote in a persisted week schedule."""
    if not previous_schedule:
        return frozenset()
    remote_names = {
        day.get("personName")
        for day in previous_schedule.get("days", [])
        if day.get("isRemote")
    }
    members = (get_member_by_name(roster, name) for name in remote_names)
    return frozenset(m.id for m in members if m is not None)


def apply_no_repeat_rule(
    active_roster: list[RosterMember],
    excluded: frozenset[str],
) -> tuple[list[RosterMember], bool]:
    """
    Soft rule. Returns (available, dropped) where dropped is True when the
    exclusion had to be ignored to keep three candidates.
    """
    available = [m for m in active_roster if m.id not in excluded]
    if len(available) < REMOTE_SLOTS and len(available) < len(active_roster):
        return list(active_roster), True
    return available, False


def enforce_placeholder_cap(
    selected: list[RosterMember],
    available: list[RosterMember],
    seed: int,
) -> tuple[list[RosterMember], tuple[str, ...]]:
    """
    Hard rule. Keeps the first placeholder only and backfills the freed
    slots with real people. Returns (selected, dropped placeholder ids).
    """
    if sum(1 for m in selected if m.is_placeholder) <= 1:
        return selected, ()

    kept: list[RosterMember] = []
    dropped: list[str] = []
    has_placeholder = False
    for member in selected:
        if member.is_placeholder:
            if has_placeholder:
                dropped.append(member.id)
                continue
            has_placeholder = True
        kept.append(member)

    chosen = {m.id for m in kept}
    real = [m for m in available if not m.is_placeholder]
    for candidate in seeded_shuffle(real, seed + REPAIR_SHUFFLE_OFFSET):
        if len(kept) >= REMOTE_SLOTS:
            break
        if candidate.id not in chosen:
            kept.append(candidate)
            chosen.add(candidate.id)
    return kept, tuple(dropped)


def select_people(available: list[RosterMember], seed: int) -> list[RosterMember]:
    """Pick up to three people, in the order they will be given days."""
    placeholders = [m for m in available if m.is_placeholder]
    real = [m for m in available if not m.is_placeholder]

    include_placeholder = bool(placeholders) and seeded_float(seed + PLACEHOLDER_COIN_OFFSET) > 0.5
    if include_placeholder:
        selected = seeded_shuffle(placeholders, seed + PLACEHOLDER_SHUFFLE_OFFSET)[:1]
        selected += seeded_shuffle(real, seed)[: REMOTE_SLOTS - 1]
        if len(selected) < REMOTE_SLOTS:
            chosen = {m.id for m in selected}
            leftovers = [m for m in available if m.id not in chosen]
            selected += leftovers[: REMOTE_SLOTS - len(selected)]
    else:
        selected = seeded_shuffle(real, seed)[:REMOTE_SLOTS]
        if len(selected) < REMOTE_SLOTS:
            shuffled = seeded_shuffle(placeholders, seed + PLACEHOLDER_SHUFFLE_OFFSET)
            selected += shuffled[: REMOTE_SLOTS - len(selected)]
    return selected


def plan_rotation(
    week: WeekIdentity,
    active_roster: list[RosterMember],
    previous_schedule: Optional[dict[str, Any]] = None,
) -> RotationResult:
    """
    Compute the remote-day assignment for a week.
    Pure function: no I/O, no metrics, no logging. Never raises.
    """
    seed = rotation_seed(week)
    active = [m for m in active_roster if m.active]
    excluded = previous_remote_ids(previous_schedule, active)

    available, no_repeat_dropped = apply_no_repeat_rule(active, excluded)
    selected = select_people(available, seed)
    selected, dropped = enforce_placeholder_cap(selected, available, seed)

    days = seeded_shuffle(ELIGIBLE_DAYS, seed + DAY_SHUFFLE_OFFSET)
    assignment = {day: member.id for day, member in zip(days, selected)}

    return RotationResult(
        week=week,
        seed=seed,
        assignment=assignment,
        excluded=excluded,
        no_repeat_dropped=no_repeat_dropped,
        placeholders_dropped=dropped,
    )


def assign_week(
    week: WeekIdentity,
    active_roster: list[RosterMember],
    previous_schedule: Optional[dict[str, Any]] = None,
) -> dict[str, str]:
    """Day name -> roster id for the eligible days that got someone."""
    return plan_rotation(week, active_roster, previous_schedule).assignment
