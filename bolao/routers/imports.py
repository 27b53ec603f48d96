"""
Bank-statement import endpoints.

POST  /api/admin/bolao/{id}/import-csv   — reconcile a CSV extract → transactions
GET   /api/admin/bolao/{id}/transacoes   — list imported transactions
PATCH /api/admin/transacoes/{id}         — approve / ignore a pending transaction
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bolao.auth import CurrentUser, require_admin
from bolao.config import settings
from bolao.database import get_db
from bolao.llm import GeminiClient, get_llm
from bolao.models import ImportedTransactionModel, ParticipationModel
from bolao.pipeline import reconcile
from bolao.routers.pools import get_pool_or_404
from bolao.schemas import (
    ImportedTransactionResponse,
    ImportResponse,
    Participant,
    TransactionReview,
    TransactionStatus,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def transform_transaction(model: ImportedTransactionModel) -> ImportedTransactionResponse:
    """ImportedTransactionModel → ImportedTransactionResponse"""
    return ImportedTransactionResponse(
        id=model.id,
        bolao_id=model.bolao_id,
        hash_transacao=model.hash_transacao,
        lote_importacao=model.lote_importacao,
        data_transacao=model.data_transacao,
        valor=model.valor,
        descricao_original=model.descricao_original or "",
        tipo_transacao=model.tipo_transacao,
        nome_pagador=model.nome_pagador,
        documento_pagador=model.documento_pagador,
        status=model.status,
        cotas_identificadas=model.cotas_identificadas,
        confianca_ia=model.confianca_ia,
        observacao_ia=model.observacao_ia,
        motivo_rejeicao=model.motivo_rejeicao,
        user_email_sugerido=model.user_email_sugerido,
        created_at=model.created_at,
        processado_em=model.processado_em,
    )


# ── POST /api/admin/bolao/{bolao_id}/import-csv ──────────────────────────────
@router.post("/admin/bolao/{bolao_id}/import-csv", response_model=ImportResponse)
def import_csv(
    bolao_id: str,
    csv: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    llm: Optional[GeminiClient] = Depends(get_llm),
    admin: CurrentUser = Depends(require_admin),
):
    pool = get_pool_or_404(db, bolao_id)

    if csv is None:
        raise HTTPException(status_code=400, detail="Arquivo CSV é obrigatório")

    csv_text = csv.file.read().decode("utf-8-sig", errors="replace")
    logger.info(
        "Import: bolao=%s file=%s len=%d by=%s",
        bolao_id, csv.filename, len(csv_text), admin.email,
    )

    participants = [
        Participant(user_id=p.user_id, user_email=p.user_email, user_name=p.user_name)
        for p in db.query(ParticipationModel).filter(ParticipationModel.bolao_id == bolao_id)
    ]
    existing_hashes = {
        row.hash_transacao
        for row in db.query(ImportedTransactionModel.hash_transacao).filter(
            ImportedTransactionModel.bolao_id == bolao_id
        )
    }

    analysis = reconcile(
        csv_text,
        pool.quota_value,
        participants,
        existing_hashes,
        llm=llm,
        tolerance=Decimal(str(settings.QUOTA_TOLERANCE)),
    )

    lote_id = str(uuid.uuid4())
    new_transactions = [t for t in analysis.transacoes if not t.ja_processada]
    for t in new_transactions:
        db.add(
            ImportedTransactionModel(
                id=str(uuid.uuid4()),
                bolao_id=bolao_id,
                hash_transacao=t.hash_transacao,
                lote_importacao=lote_id,
                data_transacao=t.data_transacao,
                valor=t.valor,
                descricao_original=t.descricao_original,
                tipo_transacao=t.tipo_transacao,
                nome_pagador=t.nome_pagador,
                documento_pagador=t.documento_pagador,
                status=t.status.value,
                cotas_identificadas=t.cotas_identificadas,
                confianca_ia=t.confianca_ia,
                observacao_ia=t.observacao_ia,
                motivo_rejeicao=t.motivo_rejeicao,
                user_email_sugerido=t.user_email_sugerido,
            )
        )

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to store transactions for %s: %s", bolao_id, e, exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Erro ao salvar transações: {e}"
        ) from e

    ignored = len(analysis.transacoes) - len(new_transactions)
    logger.info("Stored batch %s: %d new, %d ignored", lote_id, len(new_transactions), ignored)

    return ImportResponse(
        success=True,
        lote_id=lote_id,
        analise=analysis,
        transacoes_salvas=len(new_transactions),
        transacoes_ignoradas=ignored,
    )


# ── GET /api/admin/bolao/{bolao_id}/transacoes ───────────────────────────────
@router.get(
    "/admin/bolao/{bolao_id}/transacoes",
    response_model=List[ImportedTransactionResponse],
)
def list_transactions(
    bolao_id: str,
    status: Optional[TransactionStatus] = None,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    get_pool_or_404(db, bolao_id)
    query = db.query(ImportedTransactionModel).filter(
        ImportedTransactionModel.bolao_id == bolao_id
    )
    if status:
        query = query.filter(ImportedTransactionModel.status == status.value)
    rows = query.order_by(ImportedTransactionModel.created_at.desc()).all()
    return [transform_transaction(r) for r in rows]


# ── PATCH /api/admin/transacoes/{transacao_id} ───────────────────────────────
@router.patch("/admin/transacoes/{transacao_id}", response_model=ImportedTransactionResponse)
def review_transaction(
    transacao_id: str,
    req: TransactionReview,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    row = (
        db.query(ImportedTransactionModel)
        .filter(ImportedTransactionModel.id == transacao_id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Transação não encontrada")
    if row.status != TransactionStatus.PENDING.value:
        raise HTTPException(
            status_code=409,
            detail=f"Apenas transações pendentes podem ser revisadas (status atual: {row.status})",
        )

    row.status = req.status
    row.processado_em = datetime.utcnow()
    db.commit()
    logger.info("Transaction %s marked %s by %s", transacao_id, req.status, admin.email)
    return transform_transaction(row)
