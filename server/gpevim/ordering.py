"""
Sort order for listed records.
"""

from __future__ import annotations

import unicodedata
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from gpevim.db import MemberRecord, PublicationRecord

CATEGORY_RANK = {
    "coordenadores": 1,
    "colaboradores": 2,
    "iniciacao_cientifica": 3,
    "iniciacao_cientifica_junior": 4,
}
UNKNOWN_CATEGORY_RANK = 5


def category_rank(category: str | None) -> int:
    return CATEGORY_RANK.get(category or "", UNKNOWN_CATEGORY_RANK)


def collation_key(value: str) -> tuple[str, str, str]:
    """
    Approximates a locale-aware comparison for Portuguese names.

    Base letters are compared first, ignoring accents and case, so "Álvaro"
    sorts next to "Alvaro" instead of after "Zé". Accents break ties next,
    then case (lowercase first).
    """
    decomposed = unicodedata.normalize("NFD", value or "")
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), decomposed.casefold(), decomposed.swapcase()


def sort_publications(records: Iterable[PublicationRecord]) -> list[PublicationRecord]:
    """Newest first."""
    return sorted(records, key=lambda record: record.created_at, reverse=True)


def sort_members(records: Iterable[MemberRecord]) -> list[MemberRecord]:
    return sorted(
        records,
        key=lambda record: (category_rank(record.category), collation_key(record.name)),
    )
