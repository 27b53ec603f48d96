"""
Enquetes

POST   /api/admin/enquetes                   — create poll
GET    /api/admin/enquetes                   — every poll with vote counts
PATCH  /api/admin/enquetes/{id}/encerrar     — close poll
DELETE /api/admin/enquetes/{id}              — delete poll and its votes
GET    /api/enquetes                         — open polls visible to the caller
POST   /api/enquetes/{id}/votos              — vote (once per user)
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bolao.auth import CurrentUser, get_current_user, require_admin
from bolao.database import get_db
from bolao.models import PollModel, PollVoteModel
from bolao.schemas.poll import PollCreate, PollOption, PollResponse, VoteCreate, VoteResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _domain(email: str) -> str:
    return "@" + email.split("@")[-1].lower()


def is_closed(poll: PollModel, now: Optional[datetime] = None) -> bool:
    """Encerrada manualmente ou com prazo vencido"""
    now = now or datetime.utcnow()
    return poll.status == "encerrada" or poll.data_fim < now


def is_visible_to(poll: PollModel, email: str) -> bool:
    targets = poll.dominios_alvo or []
    return not targets or _domain(email) in targets


def count_votes(db: Session, enquete_id: str) -> Dict[str, int]:
    rows = (
        db.query(PollVoteModel.opcao_id, func.count(PollVoteModel.id))
        .filter(PollVoteModel.enquete_id == enquete_id)
        .group_by(PollVoteModel.opcao_id)
        .all()
    )
    return {opcao_id: count for opcao_id, count in rows}


def transform_poll(
    model: PollModel, votos: Dict[str, int], meu_voto: Optional[str] = None
) -> PollResponse:
    return PollResponse(
        id=model.id,
        titulo=model.titulo,
        descricao=model.descricao,
        opcoes=[PollOption(**o) for o in model.opcoes],
        dominios_alvo=model.dominios_alvo or [],
        data_fim=model.data_fim,
        status=model.status,
        encerrada=is_closed(model),
        votos=votos,
        total_votos=sum(votos.values()),
        meu_voto=meu_voto,
        created_at=model.created_at,
    )


def get_poll_or_404(db: Session, enquete_id: str) -> PollModel:
    poll = db.query(PollModel).filter(PollModel.id == enquete_id).first()
    if not poll:
        raise HTTPException(status_code=404, detail="Enquete não encontrada")
    return poll


# ── POST /api/admin/enquetes ─────────────────────────────────────────────────
@router.post("/admin/enquetes", response_model=PollResponse)
def create_poll(
    req: PollCreate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    opcoes = [o.strip() for o in req.opcoes if o.strip()]
    if len(opcoes) < 2:
        raise HTTPException(status_code=400, detail="Adicione pelo menos 2 opções")

    dominios = []
    for d in req.dominios_alvo:
        d = d.strip().lower()
        if d and not d.startswith("@"):
            d = "@" + d
        if d and d not in dominios:
            dominios.append(d)

    poll = PollModel(
        id=str(uuid.uuid4()),
        titulo=req.titulo,
        descricao=req.descricao or None,
        opcoes=[{"id": str(i + 1), "texto": texto} for i, texto in enumerate(opcoes)],
        dominios_alvo=dominios,
        data_fim=_naive_utc(req.data_fim),
        status="ativa",
        created_by=admin.id,
    )
    db.add(poll)
    db.commit()
    logger.info("Created poll %s with %d options", poll.id, len(opcoes))
    return transform_poll(poll, {})


# ── GET /api/admin/enquetes ──────────────────────────────────────────────────
@router.get("/admin/enquetes", response_model=List[PollResponse])
def list_polls_admin(
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    rows = db.query(PollModel).order_by(PollModel.created_at.desc()).all()
    return [transform_poll(r, count_votes(db, r.id)) for r in rows]


# ── PATCH /api/admin/enquetes/{enquete_id}/encerrar ──────────────────────────
@router.patch("/admin/enquetes/{enquete_id}/encerrar", response_model=PollResponse)
def close_poll(
    enquete_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    poll = get_poll_or_404(db, enquete_id)
    poll.status = "encerrada"
    db.commit()
    logger.info("Poll %s closed by %s", enquete_id, admin.email)
    return transform_poll(poll, count_votes(db, enquete_id))


# ── DELETE /api/admin/enquetes/{enquete_id} ──────────────────────────────────
@router.delete("/admin/enquetes/{enquete_id}")
def delete_poll(
    enquete_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    poll = get_poll_or_404(db, enquete_id)
    db.query(PollVoteModel).filter(PollVoteModel.enquete_id == enquete_id).delete()
    db.delete(poll)
    db.commit()
    logger.info("Deleted poll %s", enquete_id)
    return {"message": "Enquete excluída", "enquete_id": enquete_id}


# ── GET /api/enquetes ────────────────────────────────────────────────────────
@router.get("/enquetes", response_model=List[PollResponse])
def list_polls(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Enquetes abertas para o domínio do usuário, com o voto dele"""
    now = datetime.utcnow()
    rows = (
        db.query(PollModel)
        .filter(PollModel.status == "ativa", PollModel.data_fim > now)
        .order_by(PollModel.created_at.desc())
        .all()
    )
    my_votes = {
        v.enquete_id: v.opcao_id
        for v in db.query(PollVoteModel).filter(PollVoteModel.user_id == user.id)
    }
    return [
        transform_poll(r, count_votes(db, r.id), my_votes.get(r.id))
        for r in rows
        if is_visible_to(r, user.email)
    ]


# ── POST /api/enquetes/{enquete_id}/votos ────────────────────────────────────
@router.post("/enquetes/{enquete_id}/votos", response_model=VoteResponse)
def vote(
    enquete_id: str,
    req: VoteCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    poll = get_poll_or_404(db, enquete_id)
    if is_closed(poll):
        raise HTTPException(status_code=400, detail="Esta enquete está encerrada")
    if not is_visible_to(poll, user.email):
        raise HTTPException(status_code=403, detail="Enquete não disponível para o seu domínio")
    if req.opcao_id not in {o["id"] for o in poll.opcoes}:
        raise HTTPException(status_code=400, detail="Opção inválida")

    existing = db.query(PollVoteModel).filter(
        PollVoteModel.enquete_id == enquete_id,
        PollVoteModel.user_id == user.id,
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Você já votou nesta enquete")

    db.add(
        PollVoteModel(
            id=str(uuid.uuid4()),
            enquete_id=enquete_id,
            user_id=user.id,
            user_email=user.email,
            opcao_id=req.opcao_id,
        )
    )
    try:
        db.commit()
    except IntegrityError as e:
        # concurrent vote by the same user
        db.rollback()
        raise HTTPException(status_code=409, detail="Você já votou nesta enquete") from e

    logger.info("%s voted %s on poll %s", user.email, req.opcao_id, enquete_id)
    return VoteResponse(enquete_id=enquete_id, opcao_id=req.opcao_id)
