"""
E-mails autorizados a se registrar
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from bolao.auth import CurrentUser, require_admin
from bolao.config import settings
from bolao.database import get_db
from bolao.models import AuthorizedEmailModel
from bolao.schemas.community import (
    AuthorizedEmailCreate,
    AuthorizedEmailResponse,
    CheckEmailResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def transform_authorized(model: AuthorizedEmailModel) -> AuthorizedEmailResponse:
    return AuthorizedEmailResponse(
        id=model.id,
        tipo=model.tipo,
        valor=model.valor,
        ativo=model.ativo,
        created_at=model.created_at,
    )


def is_email_authorized(email: str, entries: list[AuthorizedEmailModel]) -> bool:
    """E-mail exato ou sufixo de domínio, sem diferenciar maiúsculas"""
    email = email.lower()
    for item in entries:
        valor = item.valor.lower()
        if item.tipo == "email" and email == valor:
            return True
        if item.tipo == "dominio" and email.endswith(valor):
            return True
    return False


# ── GET /api/check-email ─────────────────────────────────────────────────────
@router.get("/check-email", response_model=CheckEmailResponse)
def check_email(email: Optional[str] = None, db: Session = Depends(get_db)):
    if not email:
        return JSONResponse(
            status_code=400,
            content={"authorized": False, "message": "Email é obrigatório"},
        )

    entries = db.query(AuthorizedEmailModel).filter(AuthorizedEmailModel.ativo == True).all()  # noqa: E712

    if not entries:
        fallback = email.lower().endswith(settings.FALLBACK_ALLOWED_DOMAIN.lower())
        return CheckEmailResponse(
            authorized=fallback,
            message="Email autorizado"
            if fallback
            else f"Apenas emails {settings.FALLBACK_ALLOWED_DOMAIN} são permitidos",
        )

    authorized = is_email_authorized(email, entries)
    return CheckEmailResponse(
        authorized=authorized,
        message="Email autorizado" if authorized else "Este email não está autorizado para registro",
    )


# ── GET /api/admin/emails-autorizados ────────────────────────────────────────
@router.get("/admin/emails-autorizados", response_model=List[AuthorizedEmailResponse])
def list_authorized(
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    rows = db.query(AuthorizedEmailModel).order_by(AuthorizedEmailModel.created_at.desc()).all()
    return [transform_authorized(r) for r in rows]


# ── POST /api/admin/emails-autorizados ───────────────────────────────────────
@router.post("/admin/emails-autorizados", response_model=AuthorizedEmailResponse)
def create_authorized(
    req: AuthorizedEmailCreate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    valor = req.valor.strip().lower()
    if req.tipo == "dominio" and not valor.startswith("@"):
        valor = "@" + valor

    existing = db.query(AuthorizedEmailModel).filter(AuthorizedEmailModel.valor == valor).first()
    if existing:
        raise HTTPException(status_code=409, detail="Este email/domínio já está cadastrado")

    entry = AuthorizedEmailModel(id=str(uuid.uuid4()), tipo=req.tipo, valor=valor, ativo=True)
    db.add(entry)
    db.commit()
    logger.info("Authorized %s %s", req.tipo, valor)
    return transform_authorized(entry)


# ── PATCH /api/admin/emails-autorizados/{entry_id} ───────────────────────────
@router.patch("/admin/emails-autorizados/{entry_id}", response_model=AuthorizedEmailResponse)
def toggle_authorized(
    entry_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """Ativar/desativar"""
    entry = db.query(AuthorizedEmailModel).filter(AuthorizedEmailModel.id == entry_id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Registro não encontrado")
    entry.ativo = not entry.ativo
    db.commit()
    return transform_authorized(entry)


# ── DELETE /api/admin/emails-autorizados/{entry_id} ──────────────────────────
@router.delete("/admin/emails-autorizados/{entry_id}")
def delete_authorized(
    entry_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    entry = db.query(AuthorizedEmailModel).filter(AuthorizedEmailModel.id == entry_id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Registro não encontrado")
    valor = entry.valor
    db.delete(entry)
    db.commit()
    logger.info("Removed authorized entry %s", valor)
    return {"message": "Registro removido", "id": entry_id}
