"""
Content hash used as the per-pool idempotence key of an imported transaction.
"""
from __future__ import annotations

import hashlib
from decimal import Decimal

from bolao.pipeline.amounts import to_decimal

HASH_LENGTH = 32


def transaction_hash(data: str, valor: float | Decimal, descricao: str) -> str:
    """SHA-256 of ``date-amount-description``, truncated to 32 hex chars.

    The amount is normalized to two decimals so ``30``, ``30.0`` and
    ``30.00`` hash alike; the whole key is trimmed and lower-cased.
    """
    amount = to_decimal(valor).quantize(Decimal("0.01"))
    key = f"{data.strip()}-{amount}-{descricao.strip()}".lower().strip()
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:HASH_LENGTH]
