"""
Conexão com o banco de dados
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from bolao.config import settings

# SQLite needs check_same_thread=False
connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Sessão do banco por requisição"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
