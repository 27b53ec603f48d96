"""
Rule-based bank-statement analyzer (used when Gemini is unavailable).

Scans each CSV line independently: the first monetary-looking column is the
amount, the first ISO/BR date is the date, the first column mentioning PIX or
a transfer is the description. Only credits are kept.
"""
from __future__ import annotations

import csv
import logging
import re
from datetime import date
from decimal import Decimal
from typing import Iterable

from bolao.pipeline.amounts import DEFAULT_TOLERANCE, first_amount, quota_breakdown, to_decimal
from bolao.pipeline.matcher import extract_payer_name, match_participant
from bolao.schemas import AnalyzedTransaction, Participant, TransactionStatus

logger = logging.getLogger(__name__)

MIN_COLUMNS = 3
FALLBACK_CONFIDENCE = 0.5
FALLBACK_NOTE = "Análise básica (sem IA)"

_DATE = re.compile(r"(\d{2}/\d{2}/\d{4}|\d{4}-\d{2}-\d{2})")
_DESCRIPTION_KEYWORDS = ("pix", "transf")


def split_columns(line: str) -> list[str]:
    """Split one CSV line on ``;`` when present, otherwise on ``,``."""
    delimiter = ";" if ";" in line else ","
    row = next(csv.reader([line], delimiter=delimiter, skipinitialspace=True), [])
    return [col.strip().replace('"', "") for col in row]


def _first_date(columns: list[str]) -> str:
    for col in columns:
        m = _DATE.search(col)
        if m:
            return m.group(1)
    return ""


def _description(columns: list[str]) -> str:
    for col in columns:
        lowered = col.lower()
        if any(k in lowered for k in _DESCRIPTION_KEYWORDS):
            return col
    return columns[1] if len(columns) > 1 else ""


def _money(value: Decimal) -> str:
    return f"R$ {value:.2f}"


def analyze_row(
    columns: list[str],
    quota_value: Decimal,
    participants: list[Participant],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> AnalyzedTransaction | None:
    """Classify one split CSV row; ``None`` when it is not a credit."""
    if len(columns) < MIN_COLUMNS:
        return None

    amount = first_amount(columns)
    if amount is None or amount <= 0:
        return None

    description = _description(columns)
    is_pix = "pix" in description.lower()
    quotas, is_multiple = quota_breakdown(amount, quota_value, tolerance)

    payer = extract_payer_name(columns)
    participant = match_participant(payer, participants)

    reason = None
    if not is_multiple:
        status = TransactionStatus.INVALID
        reason = f"Valor {_money(amount)} não é múltiplo de {_money(quota_value)}"
    elif participant is None:
        status = TransactionStatus.USER_NOT_FOUND
        reason = f'Pagador "{payer}" não encontrado na lista de participantes'
    else:
        status = TransactionStatus.PENDING

    return AnalyzedTransaction(
        data_transacao=_first_date(columns) or date.today().isoformat(),
        valor=float(amount),
        descricao_original=description,
        nome_pagador=payer,
        documento_pagador=None,
        tipo_transacao="pix_entrada" if is_pix else "outro",
        cotas_identificadas=quotas,
        status=status,
        confianca_ia=FALLBACK_CONFIDENCE,
        observacao_ia=FALLBACK_NOTE,
        motivo_rejeicao=reason,
        user_email_sugerido=participant.user_email if participant else None,
    )


def analyze_statement(
    csv_text: str,
    quota_value: float | Decimal,
    participants: Iterable[Participant],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> list[AnalyzedTransaction]:
    """Analyze every line of *csv_text*, preserving input order.

    Header lines carry no amount and drop out on their own.
    """
    quota_value = to_decimal(quota_value)
    roster = list(participants)
    transactions: list[AnalyzedTransaction] = []
    skipped = 0

    for line in csv_text.splitlines():
        if not line.strip():
            continue
        txn = analyze_row(split_columns(line), quota_value, roster, tolerance)
        if txn is None:
            skipped += 1
            continue
        transactions.append(txn)

    logger.info(
        "Fallback analysis: %d credits, %d lines skipped", len(transactions), skipped
    )
    return transactions
