"""
bolao-contracts — Canonical schemas for the reconciliation pipeline.

Both the Gemini-backed analyzer and the local fallback produce these
Pydantic v2 models; the import endpoint returns them unchanged.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Status enumeration
# ---------------------------------------------------------------------------

class TransactionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    INVALID = "invalid"
    USER_NOT_FOUND = "user_not_found"
    IGNORED = "ignored"


# Gemini answers in Portuguese more often than not
_STATUS_ALIASES: dict[str, str] = {
    "pendente": "pending",
    "aprovado": "approved",
    "invalido": "invalid",
    "inválido": "invalid",
    "usuario_nao_encontrado": "user_not_found",
    "usuário_não_encontrado": "user_not_found",
    "ignorado": "ignored",
}


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class Participant(BaseModel):
    """A roster entry the payer name is matched against."""
    user_id: str = ""
    user_email: str
    user_name: Optional[str] = None


# ---------------------------------------------------------------------------
# Pipeline output
# ---------------------------------------------------------------------------

class AnalyzedTransaction(BaseModel):
    data_transacao: str
    valor: float = Field(..., allow_inf_nan=False)
    descricao_original: str = ""
    nome_pagador: Optional[str] = None
    documento_pagador: Optional[str] = None
    tipo_transacao: str = Field(default="outro", description="pix_entrada | outro")
    cotas_identificadas: int = Field(default=0, ge=0)
    status: TransactionStatus
    confianca_ia: float = Field(default=0.0, ge=0, le=1)
    observacao_ia: str = ""
    motivo_rejeicao: Optional[str] = None
    user_email_sugerido: Optional[str] = None
    hash_transacao: str = ""
    # set only by repeat suppression; never serialized
    ja_processada: bool = Field(default=False, exclude=True)

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace(" ", "_")
            return _STATUS_ALIASES.get(key, key)
        return value


class AnalysisSummary(BaseModel):
    total_depositos: int = 0
    total_valor: float = 0.0
    cotas_identificadas: int = 0
    depositos_validos: int = 0
    depositos_invalidos: int = 0
    usuarios_nao_encontrados: int = 0
    ja_processados: int = 0


class Analysis(BaseModel):
    transacoes: list[AnalyzedTransaction] = Field(default_factory=list)
    resumo: AnalysisSummary = Field(default_factory=AnalysisSummary)


# The model may only propose these; approval belongs to an administrator and
# ``ignored`` is reserved for repeat suppression.
AI_STATUSES = frozenset(
    {TransactionStatus.PENDING, TransactionStatus.INVALID, TransactionStatus.USER_NOT_FOUND}
)


class AIAnalysis(BaseModel):
    """Shape Gemini is asked to return. ``resumo`` is recomputed locally."""
    transacoes: list[AnalyzedTransaction]
    resumo: Optional[dict] = None

    @field_validator("transacoes")
    @classmethod
    def _proposable_statuses(cls, value: list[AnalyzedTransaction]):
        for txn in value:
            if txn.status not in AI_STATUSES:
                raise ValueError(f"status {txn.status.value!r} cannot be proposed by the model")
        return value


# ---------------------------------------------------------------------------
# API request / response envelopes
# ---------------------------------------------------------------------------

class ImportResponse(BaseModel):
    success: bool = True
    lote_id: str
    analise: Analysis
    transacoes_salvas: int
    transacoes_ignoradas: int


class ImportedTransactionResponse(BaseModel):
    id: str
    bolao_id: str
    hash_transacao: str
    lote_importacao: str
    data_transacao: str
    valor: float
    descricao_original: str
    tipo_transacao: str
    nome_pagador: Optional[str] = None
    documento_pagador: Optional[str] = None
    status: TransactionStatus
    cotas_identificadas: int
    confianca_ia: float
    observacao_ia: Optional[str] = None
    motivo_rejeicao: Optional[str] = None
    user_email_sugerido: Optional[str] = None
    created_at: datetime
    processado_em: Optional[datetime] = None


class TransactionReview(BaseModel):
    status: Literal["approved", "ignored"]
