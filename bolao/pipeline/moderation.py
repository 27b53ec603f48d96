"""
Comment moderation — Gemini first, word list as fallback.
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from bolao.llm import LLMError, strip_code_fences
from bolao.pipeline.ai_analyzer import TextModel
from bolao.schemas.community import ModerationResult

logger = logging.getLogger(__name__)

BLOCKED_WORDS: tuple[str, ...] = (
    "idiota", "burro", "imbecil", "estupido", "retardado",
    "merda", "porra", "caralho", "foda", "fodase",
    "viado", "bicha", "sapatao", "sapata",
    "preto", "negro", "macaco",  # offensive in this context
    "vagabundo", "lixo", "nojento",
)

INAPPROPRIATE = "Mensagem contém linguagem inapropriada"

MODERATION_PROMPT = """Você é um moderador de conteúdo para uma plataforma corporativa de bolões.
Analise a seguinte mensagem e determine se ela é apropriada para publicação.

REGRAS:
- Não permitir palavrões ou linguagem vulgar
- Não permitir ofensas pessoais ou bullying
- Não permitir discriminação (raça, gênero, religião, etc)
- Não permitir assédio ou ameaças
- Não permitir spam ou conteúdo irrelevante
- Permitir críticas construtivas e sugestões

MENSAGEM: "{mensagem}"

Responda APENAS com um JSON válido no formato (sem markdown):
{{"aprovado": true/false, "motivo": "motivo se rejeitado ou vazio se aprovado"}}
"""


def moderate_basic(message: str) -> ModerationResult:
    lowered = message.lower()
    for word in BLOCKED_WORDS:
        if word in lowered:
            return ModerationResult(aprovado=False, motivo=INAPPROPRIATE)
    return ModerationResult(aprovado=True, motivo="")


def moderate_comment(message: str, llm: Optional[TextModel] = None) -> ModerationResult:
    if llm is None:
        return moderate_basic(message)

    try:
        completion = llm.generate(MODERATION_PROMPT.format(mensagem=message))
        return ModerationResult.model_validate_json(strip_code_fences(completion.text))
    except (LLMError, ValidationError) as exc:
        logger.warning("Gemini moderation failed, using word list: %s", exc)
        return moderate_basic(message)
