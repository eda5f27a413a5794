# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Roster configuration: who can be scheduled for remote work.
Loaded once at startup, read-only afterwards.
"""

import json
from typing import Any, Optional

from telework_planner.core.config import settings
from telework_planner.core.logging import get_logger
from telework_planner.models.domain import RosterMember, infer_kind

logger = get_logger(__name__)

DEFAULT_ROSTER: list[dict[str, Any]] = [
    {"id": "person1", "display_name": "Fabien", "active": True, "kind": "person"},
    {"id": "person2", "display_name": "Gilbert", "active": True, "kind": "person"},
    {"id": "person3", "display_name": "Vincent", "active": True, "kind": "person"},
    {"id": "person4", "display_name": "Maurice", "active": True, "kind": "person"},
    {"id": "person5", "display_name": "Place réservée", "active": True, "kind": "placeholder"},
    {"id": "person6", "display_name": "Place réservée 2", "active": True, "kind": "placeholder"},
]


def build_roster(entries: list[dict[str, Any]]) -> list[RosterMember]:
    """Validate raw entries. Entries without a kind get one from their name."""
    members: list[RosterMember] = []
    seen: set[str] = set()
    for entry in entries:
        data = dict(entry)
        if "kind" not in data:
            data["kind"] = infer_kind(data.get("display_name", ""))
        member = RosterMember(**data)
        if member.id in seen:
            raise ValueError(f"Duplicate roster id '{member.id}'")
        seen.add(member.id)
        members.append(member)
    return members


def load_roster(path: str | None = None) -> list[RosterMember]:
    """Read the roster from a JSON file, or fall back to the built-in one."""
    roster_path = path if path is not None else settings.ROSTER_FILE
    if not roster_path:
        roster = build_roster(DEFAULT_ROSTER)
    else:
        with open(roster_path, encoding="utf-8") as fh:
            raw = json.load(fh)
        if isinstance(raw, dict):
            raw = raw.get("members", [])
        roster = build_roster(raw)
        logger.info("Roster loaded from %s: %d members", roster_path, len(roster))

    active = active_members(roster)
    if len(active) < 3:
        logger.warning(
            "Only %d active roster members, remote days will be left empty",
            len(active),
        )
    return roster


def active_members(roster: list[RosterMember]) -> list[RosterMember]:
    return [m for m in roster if m.active]


def get_member_by_id(roster: list[RosterMember], member_id: str) -> Optional[RosterMember]:
    return next((m for m in roster if m.id == member_id), None)


def get_member_by_name(roster: list[RosterMember], name: str) -> Optional[RosterMember]:
    return next((m for m in roster if m.display_name == name), None)
