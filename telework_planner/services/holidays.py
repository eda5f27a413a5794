# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: French public holidays, used to annotate planning days.
Fixed-date holidays plus the ones derived from Easter Sunday.
"""

from datetime import date, timedelta
from typing import Any, Optional

FIXED_HOLIDAYS: dict[str, dict[str, Any]] = {
    "01-01": {"name": "Jour de l'an", "emoji": "🎆", "is_fixed": True},
    "05-01": {"name": "Fête du Travail", "emoji": "⚒️", "is_fixed": True},
    "05-08": {"name": "Victoire 1945", "emoji": "🇫🇷", "is_fixed": True},
    "07-14": {"name": "Fête Nationale", "emoji": "🇫🇷", "is_fixed": True},
    "08-15": {"name": "Assomption", "emoji": "✨", "is_fixed": True},
    "11-01": {"name": "Toussaint", "emoji": "🕯️", "is_fixed": True},
    "11-11": {"name": "Armistice 1918", "emoji": "🕊️", "is_fixed": True},
    "12-25": {"name": "Noël", "emoji": "🎅", "is_fixed": True},
    "12-26": {"name": "Saint-Étienne (Alsace-Moselle)", "emoji": "🎄", "is_fixed": True},
}

# Days after Easter Sunday.
EASTER_OFFSETS: tuple[tuple[int, str, str], ...] = (
    (1, "Lundi de Pâques", "🐣"),
    (39, "Ascension", "☁️"),
    (50, "Lundi de Pentecôte", "🕊️"),
)


def easter_sunday(year: int) -> date:
    """Gregorian Easter (Meeus/Jones/Butcher)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def _key(value: date) -> str:
    return value.strftime("%m-%d")


def mobile_holidays(year: int) -> dict[str, dict[str, Any]]:
    easter = easter_sunday(year)
    holidays: dict[str, dict[str, Any]] = {}
    for offset, name, emoji in EASTER_OFFSETS:
        holidays[_key(easter + timedelta(days=offset))] = {
            "name": name,
            "emoji": emoji,
            "is_fixed": False,
        }
    return holidays


def holiday_for(value: date) -> Optional[dict[str, Any]]:
    """Holiday falling on this date, or None."""
    key = _key(value)
    if key in FIXED_HOLIDAYS:
        return dict(FIXED_HOLIDAYS[key])
    mobile = mobile_holidays(value.year).get(key)
    return dict(mobile) if mobile else None


def holidays_for_year(year: int) -> list[dict[str, Any]]:
    """Every holiday of the year, sorted by date."""
    merged = {**mobile_holidays(year), **FIXED_HOLIDAYS}
    return [
        {"date": date(year, int(key[:2]), int(key[3:])).isoformat(), **holiday}
        for key, holiday in sorted(merged.items())
    ]
