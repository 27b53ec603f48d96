"""
Bolões e participações
"""
from __future__ import annotations

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bolao.auth import CurrentUser, get_current_user, require_admin
from bolao.database import get_db
from bolao.models import ParticipationModel, PoolModel
from bolao.schemas.pool import (
    ParticipationCreate,
    ParticipationResponse,
    ParticipationUpdate,
    PoolCreate,
    PoolResponse,
    PoolStatusUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def transform_pool(model: PoolModel) -> PoolResponse:
    return PoolResponse(
        id=model.id,
        name=model.name,
        description=model.description,
        quota_value=model.quota_value,
        total_quotas=model.total_quotas,
        sold_quotas=model.sold_quotas or 0,
        deadline=model.deadline,
        status=model.status,
        created_by=model.created_by,
        created_at=model.created_at,
    )


def transform_participation(model: ParticipationModel) -> ParticipationResponse:
    return ParticipationResponse(
        id=model.id,
        bolao_id=model.bolao_id,
        user_id=model.user_id,
        user_email=model.user_email,
        user_name=model.user_name,
        quotas=model.quotas,
        payment_status=model.payment_status,
        created_at=model.created_at,
    )


def get_pool_or_404(db: Session, bolao_id: str) -> PoolModel:
    pool = db.query(PoolModel).filter(PoolModel.id == bolao_id).first()
    if not pool:
        raise HTTPException(status_code=404, detail="Bolão não encontrado")
    return pool


def _check_capacity(pool: PoolModel, extra_quotas: int) -> None:
    """Garante que o limite de cotas do bolão não seja ultrapassado"""
    if pool.total_quotas is None:
        return
    available = pool.total_quotas - (pool.sold_quotas or 0)
    if extra_quotas > available:
        raise HTTPException(
            status_code=400,
            detail=f"Apenas {max(available, 0)} cotas disponíveis neste bolão",
        )


# ── POST /api/admin/boloes ───────────────────────────────────────────────────
@router.post("/admin/boloes", response_model=PoolResponse)
def create_pool(
    req: PoolCreate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """Criar bolão"""
    pool = PoolModel(
        id=str(uuid.uuid4()),
        name=req.name,
        description=req.description,
        quota_value=req.quota_value,
        total_quotas=req.total_quotas,
        sold_quotas=0,
        deadline=req.deadline,
        status="aberto",
        created_by=admin.id,
    )
    db.add(pool)
    db.commit()
    logger.info("Created pool %s (%s)", pool.id, pool.name)
    return transform_pool(pool)


# ── GET /api/boloes ──────────────────────────────────────────────────────────
@router.get("/boloes", response_model=List[PoolResponse])
def list_pools(db: Session = Depends(get_db)):
    rows = db.query(PoolModel).order_by(PoolModel.created_at.desc()).all()
    return [transform_pool(r) for r in rows]


# ── GET /api/boloes/{bolao_id} ───────────────────────────────────────────────
@router.get("/boloes/{bolao_id}", response_model=PoolResponse)
def get_pool(bolao_id: str, db: Session = Depends(get_db)):
    return transform_pool(get_pool_or_404(db, bolao_id))


# ── PATCH /api/admin/boloes/{bolao_id}/status ────────────────────────────────
@router.patch("/admin/boloes/{bolao_id}/status", response_model=PoolResponse)
def update_pool_status(
    bolao_id: str,
    req: PoolStatusUpdate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """Fechar, reabrir ou marcar como sorteado"""
    pool = get_pool_or_404(db, bolao_id)
    pool.status = req.status
    db.commit()
    logger.info("Pool %s status → %s", bolao_id, req.status)
    return transform_pool(pool)


# ── DELETE /api/admin/boloes/{bolao_id} ──────────────────────────────────────
@router.delete("/admin/boloes/{bolao_id}")
def delete_pool(
    bolao_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    pool = get_pool_or_404(db, bolao_id)
    db.query(ParticipationModel).filter(ParticipationModel.bolao_id == bolao_id).delete()
    db.delete(pool)
    db.commit()
    logger.info("Deleted pool %s", bolao_id)
    return {"message": "Bolão excluído", "bolao_id": bolao_id}


# ── POST /api/boloes/{bolao_id}/participacoes ────────────────────────────────
@router.post("/boloes/{bolao_id}/participacoes", response_model=ParticipationResponse)
def join_pool(
    bolao_id: str,
    req: ParticipationCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Participar de um bolão"""
    pool = get_pool_or_404(db, bolao_id)
    if pool.status != "aberto":
        raise HTTPException(status_code=400, detail="Este bolão não está aberto")

    existing = db.query(ParticipationModel).filter(
        ParticipationModel.bolao_id == bolao_id,
        ParticipationModel.user_id == user.id,
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Você já está participando deste bolão.")

    _check_capacity(pool, req.quotas)

    participation = ParticipationModel(
        id=str(uuid.uuid4()),
        bolao_id=bolao_id,
        user_id=user.id,
        user_email=user.email,
        user_name=user.name,
        quotas=req.quotas,
        payment_status="pendente",
    )
    db.add(participation)
    pool.sold_quotas = (pool.sold_quotas or 0) + req.quotas
    db.commit()
    logger.info("%s joined pool %s with %d quotas", user.email, bolao_id, req.quotas)
    return transform_participation(participation)


# ── PATCH /api/participacoes/{participacao_id} ───────────────────────────────
@router.patch("/participacoes/{participacao_id}", response_model=ParticipationResponse)
def buy_more_quotas(
    participacao_id: str,
    req: ParticipationUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Comprar mais cotas"""
    participation = db.query(ParticipationModel).filter(
        ParticipationModel.id == participacao_id
    ).first()
    if not participation or participation.user_id != user.id:
        raise HTTPException(status_code=404, detail="Participação não encontrada")

    pool = get_pool_or_404(db, participation.bolao_id)
    if pool.status != "aberto":
        raise HTTPException(status_code=400, detail="Este bolão não está aberto")
    _check_capacity(pool, req.quotas_adicionais)

    participation.quotas += req.quotas_adicionais
    pool.sold_quotas = (pool.sold_quotas or 0) + req.quotas_adicionais
    db.commit()
    logger.info(
        "%s bought %d more quotas in pool %s", user.email, req.quotas_adicionais, pool.id
    )
    return transform_participation(participation)


# ── GET /api/admin/boloes/{bolao_id}/participacoes ───────────────────────────
@router.get(
    "/admin/boloes/{bolao_id}/participacoes",
    response_model=List[ParticipationResponse],
)
def list_participations(
    bolao_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    get_pool_or_404(db, bolao_id)
    rows = (
        db.query(ParticipationModel)
        .filter(ParticipationModel.bolao_id == bolao_id)
        .order_by(ParticipationModel.created_at)
        .all()
    )
    return [transform_participation(r) for r in rows]
