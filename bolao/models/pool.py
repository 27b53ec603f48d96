"""
Bolões e participações
"""
from sqlalchemy import Column, String, Text, DateTime, Integer, Float, UniqueConstraint
from datetime import datetime
from bolao.database import Base


class PoolModel(Base):
    """Bolão"""
    __tablename__ = "boloes"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    quota_value = Column(Float, nullable=False)
    total_quotas = Column(Integer)  # None = sem limite
    sold_quotas = Column(Integer, nullable=False, default=0)
    deadline = Column(DateTime)
    status = Column(String, nullable=False, default="aberto")  # aberto, fechado, sorteado
    created_by = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ParticipationModel(Base):
    """Participação de um usuário em um bolão"""
    __tablename__ = "participacoes"
    __table_args__ = (UniqueConstraint("bolao_id", "user_id", name="uq_participacao_usuario"),)

    id = Column(String, primary_key=True)
    bolao_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    user_email = Column(String, nullable=False)
    user_name = Column(String)
    quotas = Column(Integer, nullable=False)
    payment_status = Column(String, nullable=False, default="pendente")  # pendente, pago

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
