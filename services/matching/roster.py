# services/matching/roster.py
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple, Union

import yaml

from services.domain import IdentityProfile
from services.validation.schema_validation import get_required_fields, validate_with_schema

logger = logging.getLogger(__name__)

ROSTER_SCHEMA = "roster"


class RosterError(ValueError):
    """Roster file is missing or does not match roster.schema.json."""


def _profile_from_dict(d: Dict[str, Any]) -> IdentityProfile:
    try:
        created_at = datetime.fromisoformat(str(d["created_at"]))
    except ValueError as e:
        raise RosterError(f"Invalid created_at for profile {d.get('id')!r}: {d['created_at']!r}") from e

    return IdentityProfile(
        id=str(d["id"]),
        full_name=str(d["full_name"]).strip(),
        email=str(d["email"]).strip(),
        department=str(d["department"]).strip(),
        employee_id=str(d["employee_id"]).strip(),
        is_active=bool(d.get("is_active", True)),
        created_at=created_at,
    )


def roster_from_data(data: Dict[str, Any]) -> Tuple[IdentityProfile, ...]:
    if not isinstance(data, dict):
        raise RosterError(f"Invalid roster: expected a mapping, got {type(data).__name__}")
    missing = [k for k in get_required_fields(ROSTER_SCHEMA) if k not in data]
    if missing:
        raise RosterError(f"Invalid roster: missing required keys: {', '.join(missing)}")

    is_valid, msg = validate_with_schema(data, ROSTER_SCHEMA)
    if not is_valid:
        raise RosterError(f"Invalid roster: {msg}")

    profiles = tuple(_profile_from_dict(d) for d in data["profiles"])
    ids = [p.id for p in profiles]
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        raise RosterError(f"Duplicate profile ids in roster: {', '.join(dupes)}")
    return profiles


def load_roster(path: Union[str, Path]) -> Tuple[IdentityProfile, ...]:
    p = Path(path)
    if not p.exists():
        raise RosterError(f"Roster file not found: {p}")

    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    profiles = roster_from_data(data)
    logger.info(
        "loaded roster from %s: %d profiles (%d active)",
        p,
        len(profiles),
        sum(1 for x in profiles if x.is_active),
    )
    return profiles


def active_profiles(roster: Iterable[IdentityProfile]) -> Tuple[IdentityProfile, ...]:
    return tuple(p for p in roster if p.is_active)
