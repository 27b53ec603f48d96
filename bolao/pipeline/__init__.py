"""
Bolão GFT reconciliation pipeline.

Orchestrates: analyze (Gemini, or local fallback) → hash → suppress repeats →
summarize.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from bolao.pipeline.ai_analyzer import AIAnalysisError, TextModel, analyze_with_ai
from bolao.pipeline.amounts import DEFAULT_TOLERANCE, to_decimal
from bolao.pipeline.hashing import transaction_hash
from bolao.pipeline.statement_parser import analyze_statement
from bolao.schemas import Analysis, AnalysisSummary, AnalyzedTransaction, Participant, TransactionStatus

logger = logging.getLogger(__name__)

DUPLICATE_NOTE = "Transação já processada anteriormente"


def suppress_repeats(
    transactions: list[AnalyzedTransaction], existing_hashes: Iterable[str]
) -> list[AnalyzedTransaction]:
    """Stamp hashes and force ``ignored`` on anything already seen.

    A hash is "seen" if it was imported before for this pool or appeared
    earlier in the same upload. This overrides the analyzer's verdict.
    """
    seen = set(existing_hashes)
    result: list[AnalyzedTransaction] = []
    for txn in transactions:
        digest = transaction_hash(txn.data_transacao, txn.valor, txn.descricao_original)
        update: dict = {"hash_transacao": digest, "ja_processada": digest in seen}
        if digest in seen:
            update["status"] = TransactionStatus.IGNORED
            update["observacao_ia"] = DUPLICATE_NOTE
        seen.add(digest)
        result.append(txn.model_copy(update=update))
    return result


def summarize(transactions: list[AnalyzedTransaction]) -> AnalysisSummary:
    def count(status: TransactionStatus) -> int:
        return sum(1 for t in transactions if t.status == status)

    total = sum((to_decimal(t.valor) for t in transactions), Decimal("0"))
    return AnalysisSummary(
        total_depositos=len(transactions),
        total_valor=float(total),
        cotas_identificadas=sum(t.cotas_identificadas for t in transactions),
        depositos_validos=count(TransactionStatus.PENDING),
        depositos_invalidos=count(TransactionStatus.INVALID),
        usuarios_nao_encontrados=count(TransactionStatus.USER_NOT_FOUND),
        ja_processados=sum(1 for t in transactions if t.ja_processada),
    )


def reconcile(
    csv_text: str,
    quota_value: float | Decimal,
    participants: Iterable[Participant],
    existing_hashes: Iterable[str] = (),
    llm: Optional[TextModel] = None,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> Analysis:
    """Classify the credits of a bank-statement CSV for one pool.

    Gemini is tried first when *llm* is given; any failure there silently
    degrades to the rule-based analyzer. Never raises for AI problems.
    """
    roster = list(participants)
    transactions: list[AnalyzedTransaction] | None = None

    if llm is not None:
        logger.info("Pipeline start — Gemini analysis")
        try:
            transactions = analyze_with_ai(llm, csv_text, quota_value, roster, tolerance)
        except AIAnalysisError as exc:
            logger.warning("Gemini analysis failed, using fallback: %s", exc)
    else:
        logger.info("No Gemini client configured, using fallback")

    if transactions is None:
        logger.info("Pipeline — fallback analysis")
        transactions = analyze_statement(csv_text, quota_value, roster, tolerance)

    logger.info("Pipeline — repeat suppression")
    transactions = suppress_repeats(transactions, existing_hashes)

    summary = summarize(transactions)
    logger.info(
        "Reconciled %d credits: %d pending, %d invalid, %d unmatched, %d repeats",
        summary.total_depositos,
        summary.depositos_validos,
        summary.depositos_invalidos,
        summary.usuarios_nao_encontrados,
        summary.ja_processados,
    )
    return Analysis(transacoes=transactions, resumo=summary)
