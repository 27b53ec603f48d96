"""
Schemas de comentários, domínios e e-mails autorizados
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    """Novo comentário (validação de tamanho é feita no endpoint)"""
    mensagem: Optional[str] = None
    dominio: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    dominio: str
    user_name: str
    user_email: str
    mensagem: str
    aprovado: bool
    moderado_por_ia: bool
    created_at: datetime


class ModerationResult(BaseModel):
    """Decisão de moderação"""
    aprovado: bool
    motivo: str = ""


class DomainChatUpdate(BaseModel):
    chat_habilitado: bool


class DomainConfigResponse(BaseModel):
    dominio: str
    chat_habilitado: bool


class AuthorizedEmailCreate(BaseModel):
    """Novo e-mail/domínio autorizado"""
    tipo: Literal["email", "dominio"]
    valor: str = Field(..., min_length=1)


class AuthorizedEmailResponse(BaseModel):
    id: str
    tipo: str
    valor: str
    ativo: bool
    created_at: datetime


class CheckEmailResponse(BaseModel):
    authorized: bool
    message: str
