# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: pure data structures, NO FastAPI dependency.
"""

import unicodedata
from typing import Literal

from pydantic import BaseModel, Field

MemberKind = Literal["person", "placeholder"]

PLACEHOLDER_MARKERS: tuple[str, ...] = ("place reservee", "reserved")


def normalize_name(name: str) -> str:
    """Lowercase and strip diacritics: 'Place Réservée' -> 'place reservee'."""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(stripped.lower().split())


def infer_kind(display_name: str) -> MemberKind:
    """Guess the kind of a roster entry that was configured without one."""
    normalized = normalize_name(display_name)
    if any(marker in normalized for marker in PLACEHOLDER_MARKERS):
        return "placeholder"
    return "person"


class RosterMember(BaseModel):
    """A team member, or a reserved slot standing in for nobody."""
    id: str = Field(..., min_length=1, max_length=64, description="Stable member id")
    display_name: str = Field(..., min_length=1, max_length=255, description="Name shown on the planning")
    active: bool = Field(default=True, description="Inactive members are never scheduled")
    kind: MemberKind = Field(default="person", description="person or placeholder")

    @property
    def is_placeholder(self) -> bool:
        return self.kind == "placeholder"
