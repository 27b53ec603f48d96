"""
Comentários por domínio
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from bolao.auth import CurrentUser, get_current_user, require_admin
from bolao.config import settings
from bolao.database import get_db
from bolao.llm import GeminiClient, get_llm
from bolao.models import CommentModel, DomainConfigModel
from bolao.pipeline.moderation import moderate_comment
from bolao.schemas.community import (
    CommentCreate,
    CommentResponse,
    DomainChatUpdate,
    DomainConfigResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def transform_comment(model: CommentModel) -> CommentResponse:
    return CommentResponse(
        id=model.id,
        dominio=model.dominio,
        user_name=model.user_name,
        user_email=model.user_email,
        mensagem=model.mensagem,
        aprovado=model.aprovado,
        moderado_por_ia=model.moderado_por_ia,
        created_at=model.created_at,
    )


# ── POST /api/comentarios ────────────────────────────────────────────────────
@router.post("/comentarios")
def create_comment(
    req: CommentCreate,
    db: Session = Depends(get_db),
    llm: Optional[GeminiClient] = Depends(get_llm),
    user: CurrentUser = Depends(get_current_user),
):
    """Publicar comentário (moderado)"""
    if not req.mensagem or not req.dominio:
        raise HTTPException(status_code=400, detail="Mensagem e domínio são obrigatórios")

    if len(req.mensagem) > settings.COMMENT_MAX_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Mensagem deve ter no máximo {settings.COMMENT_MAX_LENGTH} caracteres",
        )

    config = db.query(DomainConfigModel).filter(DomainConfigModel.dominio == req.dominio).first()
    if config and not config.chat_habilitado:
        return JSONResponse(
            status_code=403,
            content={
                "detail": "O chat de sugestões está temporariamente desabilitado para este domínio",
                "bloqueado": True,
            },
        )

    moderation = moderate_comment(req.mensagem, llm)
    if not moderation.aprovado:
        logger.info("Comment by %s rejected: %s", user.email, moderation.motivo)
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Mensagem não aprovada pela moderação",
                "motivo": moderation.motivo,
                "moderado": True,
            },
        )

    comment = CommentModel(
        id=str(uuid.uuid4()),
        dominio=req.dominio,
        user_id=user.id,
        user_name=user.display_name,
        user_email=user.email,
        mensagem=req.mensagem,
        aprovado=True,
        moderado_por_ia=True,
    )
    db.add(comment)
    db.commit()
    logger.info("Stored comment %s on %s", comment.id, req.dominio)
    return {"success": True, "comentario": transform_comment(comment).model_dump(mode="json")}


# ── GET /api/comentarios ─────────────────────────────────────────────────────
@router.get("/comentarios", response_model=List[CommentResponse])
def list_comments(dominio: str, db: Session = Depends(get_db)):
    rows = (
        db.query(CommentModel)
        .filter(
            CommentModel.dominio == dominio,
            CommentModel.aprovado == True,  # noqa: E712
            CommentModel.deletado == False,  # noqa: E712
        )
        .order_by(CommentModel.created_at.desc())
        .all()
    )
    return [transform_comment(r) for r in rows]


# ── DELETE /api/admin/comentarios/{comentario_id} ────────────────────────────
@router.delete("/admin/comentarios/{comentario_id}")
def delete_comment(
    comentario_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """Exclusão lógica"""
    comment = db.query(CommentModel).filter(CommentModel.id == comentario_id).first()
    if not comment:
        raise HTTPException(status_code=404, detail="Comentário não encontrado")
    comment.deletado = True
    comment.deletado_por = admin.id
    db.commit()
    logger.info("Comment %s deleted by %s", comentario_id, admin.email)
    return {"message": "Comentário removido", "comentario_id": comentario_id}


# ── PUT /api/admin/dominios/{dominio}/chat ───────────────────────────────────
@router.put("/admin/dominios/{dominio}/chat", response_model=DomainConfigResponse)
def set_domain_chat(
    dominio: str,
    req: DomainChatUpdate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """Habilitar/desabilitar o chat de um domínio"""
    config = db.query(DomainConfigModel).filter(DomainConfigModel.dominio == dominio).first()
    if config is None:
        config = DomainConfigModel(dominio=dominio)
        db.add(config)
    config.chat_habilitado = req.chat_habilitado
    db.commit()
    logger.info("Chat for %s set to %s", dominio, req.chat_habilitado)
    return DomainConfigResponse(dominio=config.dominio, chat_habilitado=config.chat_habilitado)
