"""
Shared pytest fixtures — in‑memory SQLite + FastAPI TestClient + fake Gemini.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bolao.config import settings
from bolao.database import Base, get_db
from bolao.llm import Completion, get_llm
import bolao.models  # noqa: F401  register models
from bolao.main import app

ADMIN_EMAIL = "admin@empresa.com"
ADMIN = {"X-User-Email": ADMIN_EMAIL}
JOAO = {"X-User-Email": "joao@empresa.com", "X-User-Name": "João Silva"}
MARIA = {"X-User-Email": "maria@empresa.com", "X-User-Name": "Maria Souza"}

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


class FakeLLM:
    """Stands in for GeminiClient: replays canned texts or raises."""

    def __init__(self, *texts: str, error: Exception | None = None, tokens: int = 42):
        self.texts = list(texts)
        self.error = error
        self.tokens = tokens
        self.prompts: list[str] = []

    def generate(self, prompt, temperature=None, max_output_tokens=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        text = self.texts.pop(0) if len(self.texts) > 1 else self.texts[0]
        return Completion(text=text, tokens=self.tokens)


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture(autouse=True)
def _admins(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAILS", [ADMIN_EMAIL])


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def llm_slot():
    """Holds the LLM the API sees; ``None`` means no Gemini key."""
    return {"llm": None}


@pytest.fixture()
def client(db, llm_slot):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    app.dependency_overrides[get_llm] = lambda: llm_slot["llm"]
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def pool_id(client):
    resp = client.post(
        "/api/admin/boloes",
        json={"name": "Mega da Virada", "quota_value": 10.0, "total_quotas": 100},
        headers=ADMIN,
    )
    assert resp.status_code == 200
    return resp.json()["id"]
