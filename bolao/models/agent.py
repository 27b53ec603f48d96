"""
Agentes de IA e suas execuções
"""
from sqlalchemy import Column, String, Text, JSON, DateTime, Integer, Boolean
from datetime import datetime
from bolao.database import Base


class AgentModel(Base):
    """Agente de IA agendável"""
    __tablename__ = "agentes_ia"

    id = Column(String, primary_key=True)
    nome = Column(String, nullable=False)
    tipo = Column(String, nullable=False)  # homepage, moderacao, csv_stats
    prompt = Column(Text, nullable=False, default="")
    ativo = Column(Boolean, default=True, nullable=False)
    ultima_execucao = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AgentExecutionModel(Base):
    """Execução de um agente"""
    __tablename__ = "agentes_execucoes"

    id = Column(String, primary_key=True)
    agente_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="running")  # running, success, error
    inicio = Column(DateTime, default=datetime.utcnow, nullable=False)
    fim = Column(DateTime)
    resultado = Column(JSON)
    erro = Column(Text)
    tokens_usados = Column(Integer, default=0)
