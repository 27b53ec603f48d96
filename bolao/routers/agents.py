"""
Agentes de IA

POST  /api/agents/execute                    — run one agent now
GET   /api/admin/agentes                     — list agents
POST  /api/admin/agentes                     — create agent
PATCH /api/admin/agentes/{id}                — edit prompt / toggle
GET   /api/admin/agentes/{id}/execucoes      — execution history
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from bolao.auth import CurrentUser, require_admin
from bolao.database import get_db
from bolao.llm import GeminiClient, LLMError, extract_json_object, get_llm
from bolao.models import (
    AgentExecutionModel,
    AgentModel,
    CommentModel,
    ImportedTransactionModel,
    PoolModel,
)
from bolao.schemas.agent import (
    AgentCreate,
    AgentExecuteRequest,
    AgentExecutionResponse,
    AgentResponse,
    AgentUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()

HOMEPAGE_POOL_LIMIT = 5
MODERATION_BATCH = 10
STATS_WINDOW = 100


def transform_agent(model: AgentModel) -> AgentResponse:
    return AgentResponse(
        id=model.id,
        nome=model.nome,
        tipo=model.tipo,
        prompt=model.prompt or "",
        ativo=model.ativo,
        ultima_execucao=model.ultima_execucao,
        created_at=model.created_at,
    )


def transform_execution(model: AgentExecutionModel) -> AgentExecutionResponse:
    return AgentExecutionResponse(
        id=model.id,
        agente_id=model.agente_id,
        status=model.status,
        inicio=model.inicio,
        fim=model.fim,
        resultado=model.resultado,
        erro=model.erro,
        tokens_usados=model.tokens_usados or 0,
    )


# ---------------------------------------------------------------------------
# Agent runners
# ---------------------------------------------------------------------------

def run_homepage_agent(prompt: str, db: Session, llm: Optional[GeminiClient]) -> dict:
    """Texto promocional da página inicial"""
    pools = (
        db.query(PoolModel)
        .filter(PoolModel.status == "aberto")
        .order_by(PoolModel.created_at.desc())
        .limit(HOMEPAGE_POOL_LIMIT)
        .all()
    )

    if llm is None:
        return {
            "titulo": "Participe do maior bolão da empresa!",
            "subtitulo": "Junte-se aos colegas e concorra a prêmios milionários",
            "destaque": f"{len(pools)} bolões ativos",
            "cta_texto": "Entrar Agora",
            "modo": "fallback",
            "tokens_usados": 0,
        }

    lines = [
        f"- {p.name}: {p.sold_quotas or 0}/{p.total_quotas or '∞'} cotas vendidas, "
        f"R${p.quota_value:.2f}/cota, deadline: {p.deadline.isoformat() if p.deadline else '-'}"
        for p in pools
    ]
    context = f"Bolões ativos: {len(pools)}\n" + ("\n".join(lines) or "Nenhum bolão ativo")

    completion = llm.generate(
        f"{prompt}\n\nContexto atual:\n{context}\n\nRetorne o JSON:",
        temperature=0.8,
        max_output_tokens=500,
    )
    result = extract_json_object(completion.text, required=False)
    return {**result, "modo": "gemini", "tokens_usados": completion.tokens}


def run_moderation_agent(prompt: str, db: Session, llm: Optional[GeminiClient]) -> dict:
    """Revisa comentários ainda não moderados pela IA"""
    comments = (
        db.query(CommentModel)
        .filter(
            CommentModel.moderado_por_ia == False,  # noqa: E712
            CommentModel.aprovado == True,  # noqa: E712
        )
        .limit(MODERATION_BATCH)
        .all()
    )

    if not comments:
        return {
            "mensagem": "Nenhum comentário pendente de moderação",
            "processados": 0,
            "tokens_usados": 0,
        }

    if llm is None:
        return {
            "mensagem": "Moderação automática desativada (sem GEMINI_API_KEY)",
            "processados": 0,
            "tokens_usados": 0,
        }

    approved = rejected = tokens = 0
    for comment in comments:
        try:
            completion = llm.generate(
                f'{prompt}\n\nComentário a analisar: "{comment.mensagem}"\n\nRetorne o JSON:',
                temperature=0.3,
                max_output_tokens=200,
            )
            tokens += completion.tokens
            try:
                verdict = extract_json_object(completion.text)
            except ValueError:
                verdict = {"decisao": "aprovar"}
        except LLMError as e:
            logger.error("Failed to moderate comment %s: %s", comment.id, e)
            continue

        if verdict.get("decisao") == "rejeitar":
            comment.aprovado = False
            comment.motivo_rejeicao = verdict.get("motivo") or "Rejeitado pela IA"
            rejected += 1
        else:
            approved += 1
        comment.moderado_por_ia = True

    db.commit()
    return {
        "processados": len(comments),
        "aprovados": approved,
        "rejeitados": rejected,
        "tokens_usados": tokens,
    }


def run_csv_stats_agent(prompt: str, db: Session, llm: Optional[GeminiClient]) -> dict:
    """Estatísticas das transações importadas"""
    rows = (
        db.query(ImportedTransactionModel)
        .order_by(ImportedTransactionModel.created_at.desc())
        .limit(STATS_WINDOW)
        .all()
    )

    if not rows:
        return {
            "mensagem": "Nenhuma transação importada para analisar",
            "total_transacoes": 0,
            "tokens_usados": 0,
        }

    stats = {
        "total_transacoes": len(rows),
        "valor_total": round(sum(r.valor or 0 for r in rows), 2),
        "aprovadas": sum(1 for r in rows if r.status == "approved"),
        "pendentes": sum(1 for r in rows if r.status == "pending"),
        "rejeitadas": sum(1 for r in rows if r.status == "invalid"),
    }

    if llm is None:
        return {**stats, "modo": "fallback", "alertas": [], "tokens_usados": 0}

    context = (
        f"Total de transações: {stats['total_transacoes']}\n"
        f"Valor total: R$ {stats['valor_total']:.2f}\n"
        f"Aprovadas: {stats['aprovadas']}\n"
        f"Pendentes: {stats['pendentes']}\n"
        f"Rejeitadas: {stats['rejeitadas']}\n"
    )
    completion = llm.generate(
        f"{prompt}\n\nDados atuais:\n{context}\nRetorne o JSON com análise:",
        temperature=0.5,
        max_output_tokens=500,
    )
    analysis = extract_json_object(completion.text, required=False)
    return {**stats, **analysis, "modo": "gemini", "tokens_usados": completion.tokens}


AGENT_RUNNERS = {
    "homepage": run_homepage_agent,
    "moderacao": run_moderation_agent,
    "csv_stats": run_csv_stats_agent,
}


# ── POST /api/agents/execute ─────────────────────────────────────────────────
@router.post("/agents/execute")
def execute_agent(
    req: AgentExecuteRequest,
    db: Session = Depends(get_db),
    llm: Optional[GeminiClient] = Depends(get_llm),
    admin: CurrentUser = Depends(require_admin),
):
    if not req.agente_id:
        raise HTTPException(status_code=400, detail="agente_id é obrigatório")

    agent = db.query(AgentModel).filter(AgentModel.id == req.agente_id).first()
    if not agent:
        raise HTTPException(status_code=404, detail="Agente não encontrado")
    if not agent.ativo:
        raise HTTPException(status_code=400, detail="Agente está inativo")

    execution = AgentExecutionModel(
        id=str(uuid.uuid4()),
        agente_id=agent.id,
        status="running",
    )
    db.add(execution)
    db.commit()
    logger.info("Agent %s (%s) started: execution %s", agent.id, agent.tipo, execution.id)

    try:
        runner = AGENT_RUNNERS.get(agent.tipo)
        if runner is None:
            raise ValueError("Tipo de agente desconhecido")
        result = runner(agent.prompt or "", db, llm)
    except (LLMError, ValueError) as e:
        db.rollback()
        execution.status = "error"
        execution.fim = datetime.utcnow()
        execution.erro = str(e)
        db.commit()
        logger.error("Agent %s failed: %s", agent.id, e)
        return JSONResponse(
            status_code=500,
            content={"detail": str(e), "execucao_id": execution.id},
        )

    tokens = int(result.get("tokens_usados") or 0)
    execution.status = "success"
    execution.fim = datetime.utcnow()
    execution.resultado = result
    execution.tokens_usados = tokens
    agent.ultima_execucao = datetime.utcnow()
    db.commit()
    logger.info("Agent %s finished (%d tokens)", agent.id, tokens)

    return {
        "success": True,
        "execucao_id": execution.id,
        "resultado": result,
        "tokens_usados": tokens,
    }


# ── GET /api/admin/agentes ───────────────────────────────────────────────────
@router.get("/admin/agentes", response_model=List[AgentResponse])
def list_agents(
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    rows = db.query(AgentModel).order_by(AgentModel.nome).all()
    return [transform_agent(r) for r in rows]


# ── POST /api/admin/agentes ──────────────────────────────────────────────────
@router.post("/admin/agentes", response_model=AgentResponse)
def create_agent(
    req: AgentCreate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    agent = AgentModel(
        id=str(uuid.uuid4()),
        nome=req.nome,
        tipo=req.tipo,
        prompt=req.prompt,
        ativo=req.ativo,
    )
    db.add(agent)
    db.commit()
    logger.info("Created agent %s (%s)", agent.nome, agent.tipo)
    return transform_agent(agent)


# ── PATCH /api/admin/agentes/{agente_id} ─────────────────────────────────────
@router.patch("/admin/agentes/{agente_id}", response_model=AgentResponse)
def update_agent(
    agente_id: str,
    req: AgentUpdate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    agent = db.query(AgentModel).filter(AgentModel.id == agente_id).first()
    if not agent:
        raise HTTPException(status_code=404, detail="Agente não encontrado")
    if req.prompt is not None:
        agent.prompt = req.prompt
    if req.ativo is not None:
        agent.ativo = req.ativo
    db.commit()
    return transform_agent(agent)


# ── GET /api/admin/agentes/{agente_id}/execucoes ─────────────────────────────
@router.get(
    "/admin/agentes/{agente_id}/execucoes",
    response_model=List[AgentExecutionResponse],
)
def list_executions(
    agente_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    rows = (
        db.query(AgentExecutionModel)
        .filter(AgentExecutionModel.agente_id == agente_id)
        .order_by(AgentExecutionModel.inicio.desc())
        .all()
    )
    return [transform_execution(r) for r in rows]
