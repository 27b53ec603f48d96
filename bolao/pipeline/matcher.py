"""
Payer-name extraction and roster matching.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Iterable, Optional

from bolao.schemas import Participant

UNKNOWN_PAYER = "Não identificado"

# "PIX recebido de JOAO SILVA", "from Jane Doe", "Pagador: Maria"
_PAYER = re.compile(r"\b(?:de|from|pagador)\b:?\s*([A-Za-zÀ-ÿ][A-Za-zÀ-ÿ ]*)", re.IGNORECASE)


def normalize_name(name: str) -> str:
    """Casefold, drop accents and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(stripped.casefold().split())


def extract_payer_name(columns: Iterable[str]) -> str:
    """First name following a de/from/pagador prefix in any column."""
    for col in columns:
        m = _PAYER.search(col)
        if m:
            name = " ".join(m.group(1).split())
            if name:
                return name
    return UNKNOWN_PAYER


def match_participant(
    payer_name: str, participants: Iterable[Participant]
) -> Optional[Participant]:
    """First roster entry whose name contains, or is contained in, *payer_name*."""
    if not payer_name or payer_name == UNKNOWN_PAYER:
        return None
    payer = normalize_name(payer_name)
    if not payer:
        return None
    for participant in participants:
        name = normalize_name(participant.user_name or "")
        if not name:
            continue
        if payer in name or name in payer:
            return participant
    return None
