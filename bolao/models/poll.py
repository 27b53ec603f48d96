"""
Enquetes e votos
"""
from sqlalchemy import Column, String, Text, JSON, DateTime, UniqueConstraint
from datetime import datetime
from bolao.database import Base


class PollModel(Base):
    """Enquete com 2 a 6 opções, opcionalmente restrita a domínios"""
    __tablename__ = "enquetes"

    id = Column(String, primary_key=True)
    titulo = Column(String, nullable=False)
    descricao = Column(Text)
    opcoes = Column(JSON, nullable=False)  # [{"id": "1", "texto": "..."}]
    dominios_alvo = Column(JSON, nullable=False, default=list)  # [] = todos
    data_fim = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default="ativa")  # ativa, encerrada
    created_by = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PollVoteModel(Base):
    """Voto de um usuário (um por enquete)"""
    __tablename__ = "enquetes_respostas"
    __table_args__ = (UniqueConstraint("enquete_id", "user_id", name="uq_voto_usuario"),)

    id = Column(String, primary_key=True)
    enquete_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False)
    user_email = Column(String, nullable=False)
    opcao_id = Column(String, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
