"""Human-friendly train names."""

from datetime import datetime
from typing import Optional

from .models import Route, Station


def train_display_name(train_id: str, route: Optional[Route]) -> str:
    """Short name such as ``M03`` from the route prefix and departure index."""
    if route is None:
        return "Train"
    sequence = train_id.split("-")[-1]
    return f"{route.train_prefix}{sequence.zfill(2)}"


def train_number(route: Optional[Route], departure_time: datetime) -> str:
    """Timetable-style number rounded down to ten minutes, e.g. ``M0610``."""
    prefix = route.train_prefix if route is not None else "T"
    return f"{prefix}{departure_time.hour:02d}{departure_time.minute // 10}0"


def train_name(route: Optional[Route], departure_time: datetime, destination: Optional[Station]) -> str:
    """Destination plus timetable number, e.g. ``Gebze M0610``."""
    destination_name = destination.name if destination else "Unknown"
    return f"{destination_name} {train_number(route, departure_time)}"


def train_description(
    train_id: str,
    route: Optional[Route],
    departure_time: datetime,
    origin: Optional[Station],
    destination: Optional[Station],
) -> str:
    """One-line description for popups."""
    origin_name = origin.name if origin else "Unknown"
    destination_name = destination.name if destination else "Unknown"
    return (
        f"Train {train_display_name(train_id, route)}: {origin_name} → {destination_name} "
        f"(Departed: {departure_time:%H:%M})"
    )


def abbreviate_station(name: str) -> str:
    """Three-letter code for departure boards."""
    abbreviations = {
        "Halkalı": "HLK",
        "Gebze": "GBZ",
        "Ataköy": "ATK",
        "Pendik": "PND",
        "Zeytinburnu": "ZTB",
        "Sirkeci": "SRK",
        "Üsküdar": "ÜSK",
        "Yenikapı": "YKP",
        "Bakırköy": "BKK",
        "Maltepe": "MTP",
        "Bostancı": "BST",
        "Kartal": "KRT",
    }
    return abbreviations.get(name, name[:3].upper())
