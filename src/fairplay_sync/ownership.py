"""Deciding which booked slots belong to the user, and who they play with."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

_NAME_SEPARATORS = re.compile(r"[\n/,]")


def split_names(text: str | None) -> List[str]:
    """Split an occupants string on newlines, slashes and commas."""
    if not text:
        return []
    return [name.strip() for name in _NAME_SEPARATORS.split(text) if name.strip()]


def matches_identity(name: str, display_name: str) -> bool:
    """Case-insensitive substring match; the portal abbreviates names inconsistently."""
    return display_name.strip().lower() in name.lower()


def is_mine(names: Iterable[str], display_name: str | None) -> bool:
    if not display_name or not display_name.strip():
        return False
    return any(matches_identity(name, display_name) for name in names)


def extract_partner(occupants: str | None, display_name: str) -> Optional[str]:
    """
    Return the first occupant that is not the user.

    Only one partner is reported. On slots with three or more occupants the
    remaining names are ignored.
    """
    for name in split_names(occupants):
        if not matches_identity(name, display_name):
            return name
    return None
