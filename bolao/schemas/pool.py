"""
Schemas de bolões e participações
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class PoolCreate(BaseModel):
    """Criação de bolão"""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    quota_value: float = Field(..., gt=0)
    total_quotas: Optional[int] = Field(default=None, ge=1)
    deadline: Optional[datetime] = None


class PoolResponse(BaseModel):
    """Bolão"""
    id: str
    name: str
    description: Optional[str] = None
    quota_value: float
    total_quotas: Optional[int] = None
    sold_quotas: int
    deadline: Optional[datetime] = None
    status: str
    created_by: Optional[str] = None
    created_at: datetime


class PoolStatusUpdate(BaseModel):
    status: Literal["aberto", "fechado", "sorteado"]


class ParticipationCreate(BaseModel):
    """Entrada em um bolão"""
    quotas: int = Field(..., ge=1)


class ParticipationUpdate(BaseModel):
    """Compra de cotas adicionais"""
    quotas_adicionais: int = Field(..., ge=1)


class ParticipationResponse(BaseModel):
    id: str
    bolao_id: str
    user_id: str
    user_email: str
    user_name: Optional[str] = None
    quotas: int
    payment_status: str
    created_at: datetime
