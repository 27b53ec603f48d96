"""
SQLAlchemy model for imported bank-statement transactions.
"""
from sqlalchemy import Column, String, Text, DateTime, Integer, Float, UniqueConstraint
from datetime import datetime
from bolao.database import Base


class ImportedTransactionModel(Base):
    __tablename__ = "transacoes_importadas"
    __table_args__ = (UniqueConstraint("bolao_id", "hash_transacao", name="uq_transacao_hash"),)

    id = Column(String, primary_key=True)
    bolao_id = Column(String, nullable=False, index=True)
    hash_transacao = Column(String(32), nullable=False)
    lote_importacao = Column(String, nullable=False, index=True)

    data_transacao = Column(String, nullable=False)
    valor = Column(Float, nullable=False)
    descricao_original = Column(Text, nullable=False, default="")
    tipo_transacao = Column(String, nullable=False, default="outro")  # pix_entrada, outro
    nome_pagador = Column(String)
    documento_pagador = Column(String)

    status = Column(String, nullable=False)  # pending, approved, invalid, user_not_found, ignored
    cotas_identificadas = Column(Integer, nullable=False, default=0)
    confianca_ia = Column(Float, nullable=False, default=0)
    observacao_ia = Column(Text)
    motivo_rejeicao = Column(Text)
    user_email_sugerido = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    processado_em = Column(DateTime)
