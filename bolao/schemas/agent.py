"""
Schemas dos agentes de IA
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class AgentCreate(BaseModel):
    """Novo agente"""
    nome: str = Field(..., min_length=1)
    tipo: Literal["homepage", "moderacao", "csv_stats"]
    prompt: str = ""
    ativo: bool = True


class AgentUpdate(BaseModel):
    prompt: Optional[str] = None
    ativo: Optional[bool] = None


class AgentResponse(BaseModel):
    id: str
    nome: str
    tipo: str
    prompt: str
    ativo: bool
    ultima_execucao: Optional[datetime] = None
    created_at: datetime


class AgentExecuteRequest(BaseModel):
    """Execução sob demanda (agente_id validado no endpoint)"""
    agente_id: Optional[str] = None


class AgentExecutionResponse(BaseModel):
    id: str
    agente_id: str
    status: str
    inicio: datetime
    fim: Optional[datetime] = None
    resultado: Optional[dict] = None
    erro: Optional[str] = None
    tokens_usados: int = 0
