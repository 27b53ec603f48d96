"""
Schemas de enquetes
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class PollOption(BaseModel):
    id: str
    texto: str


class PollCreate(BaseModel):
    """Nova enquete (opções em branco são descartadas no endpoint)"""
    titulo: str = Field(..., min_length=1)
    descricao: Optional[str] = None
    opcoes: List[str] = Field(..., min_length=2, max_length=6)
    dominios_alvo: List[str] = Field(default_factory=list)
    data_fim: datetime


class PollResponse(BaseModel):
    id: str
    titulo: str
    descricao: Optional[str] = None
    opcoes: List[PollOption]
    dominios_alvo: List[str]
    data_fim: datetime
    status: str
    encerrada: bool
    votos: Dict[str, int] = Field(default_factory=dict)
    total_votos: int = 0
    meu_voto: Optional[str] = None
    created_at: datetime


class VoteCreate(BaseModel):
    opcao_id: str = Field(..., min_length=1)


class VoteResponse(BaseModel):
    enquete_id: str
    opcao_id: str
