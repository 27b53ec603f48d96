"""
Comentários por domínio, configuração de chat e e-mails autorizados
"""
from sqlalchemy import Column, String, Text, DateTime, Boolean
from datetime import datetime
from bolao.database import Base


class CommentModel(Base):
    """Comentário/sugestão publicado em um domínio"""
    __tablename__ = "comentarios_dominio"

    id = Column(String, primary_key=True)
    dominio = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False)
    user_name = Column(String, nullable=False)
    user_email = Column(String, nullable=False)
    mensagem = Column(String(280), nullable=False)

    aprovado = Column(Boolean, default=True, nullable=False)
    moderado_por_ia = Column(Boolean, default=False, nullable=False)
    motivo_rejeicao = Column(Text)
    deletado = Column(Boolean, default=False, nullable=False)
    deletado_por = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class DomainConfigModel(Base):
    """Configuração do chat de um domínio"""
    __tablename__ = "config_dominios"

    dominio = Column(String, primary_key=True)
    chat_habilitado = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AuthorizedEmailModel(Base):
    """E-mail ou domínio autorizado a se registrar"""
    __tablename__ = "emails_autorizados"

    id = Column(String, primary_key=True)
    tipo = Column(String, nullable=False)  # email, dominio
    valor = Column(String, nullable=False, unique=True)
    ativo = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
