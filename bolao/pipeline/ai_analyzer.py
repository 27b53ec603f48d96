"""
Gemini-backed statement analyzer.

The model output is untrusted: it is parsed against ``AIAnalysis`` and every
transaction is re-checked against the quota rule and the roster before it leaves this
module. Any failure raises ``AIAnalysisError`` so the caller can fall back.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Protocol

from pydantic import ValidationError

from bolao.llm import Completion, LLMError, strip_code_fences
from bolao.pipeline.amounts import DEFAULT_TOLERANCE, quota_breakdown, to_decimal
from bolao.pipeline.matcher import UNKNOWN_PAYER
from bolao.schemas import AIAnalysis, AnalyzedTransaction, Participant, TransactionStatus

logger = logging.getLogger(__name__)


class TextModel(Protocol):
    def generate(
        self, prompt: str, temperature: float | None = None, max_output_tokens: int | None = None
    ) -> Completion: ...


class AIAnalysisError(Exception):
    """Gemini could not produce a usable analysis."""


PROMPT_TEMPLATE = """Você é um assistente especializado em análise de extratos bancários.
Analise o seguinte extrato bancário em formato CSV e identifique APENAS os depósitos PIX de entrada (créditos).

INFORMAÇÕES DO BOLÃO:
- Valor da cota: R$ {quota:.2f}
- Cotas válidas são MÚLTIPLOS EXATOS deste valor

PARTICIPANTES CADASTRADOS:
{roster}

EXTRATO CSV:
{csv}

INSTRUÇÕES:
1. Identifique todas as transações que parecem ser depósitos PIX de entrada, na ordem em que aparecem
2. Para cada depósito, extraia: data, valor, nome do pagador
3. Calcule quantas cotas o valor corresponde (valor ÷ {quota:.2f})
4. Se o valor NÃO for múltiplo exato da cota, marque como "invalid"
5. Tente associar o nome do pagador a um dos participantes cadastrados
6. Se não encontrar o participante, marque como "user_not_found"
7. Se encontrar e o valor for válido, marque como "pending" (aguardando aprovação)

Responda APENAS com um JSON válido no seguinte formato (sem markdown):
{{
  "transacoes": [
    {{
      "data_transacao": "2024-01-15",
      "valor": 30.00,
      "descricao_original": "PIX recebido de JOAO SILVA",
      "nome_pagador": "João Silva",
      "documento_pagador": null,
      "tipo_transacao": "pix_entrada",
      "cotas_identificadas": 3,
      "status": "pending",
      "confianca_ia": 0.95,
      "observacao_ia": "3 cotas identificadas, usuário encontrado",
      "motivo_rejeicao": null,
      "user_email_sugerido": "joao@empresa.com"
    }}
  ],
  "resumo": {{}}
}}

Status possíveis: "pending", "invalid", "user_not_found"
"""


def build_prompt(csv_text: str, quota_value: Decimal, participants: list[Participant]) -> str:
    roster = "\n".join(
        f"{p.user_name or 'Sem nome'} ({p.user_email})" for p in participants
    )
    return PROMPT_TEMPLATE.format(
        quota=quota_value,
        roster=roster or "Nenhum participante cadastrado ainda",
        csv=csv_text,
    )


def _enforce_quota_rule(
    txn: AnalyzedTransaction, quota_value: Decimal, tolerance: Decimal
) -> AnalyzedTransaction:
    quotas, is_multiple = quota_breakdown(txn.valor, quota_value, tolerance)
    if not is_multiple:
        return txn.model_copy(
            update={
                "status": TransactionStatus.INVALID,
                "cotas_identificadas": 0,
                "motivo_rejeicao": txn.motivo_rejeicao
                or f"Valor R$ {txn.valor:.2f} não é múltiplo de R$ {quota_value:.2f}",
            }
        )
    if txn.status == TransactionStatus.INVALID:
        # the model flagged it for another reason; keep its verdict
        return txn.model_copy(update={"cotas_identificadas": 0})
    return txn.model_copy(update={"cotas_identificadas": quotas})


def _enforce_roster(txn: AnalyzedTransaction, roster_emails: set[str]) -> AnalyzedTransaction:
    """A suggested e-mail must belong to a participant; pending requires one."""
    email = (txn.user_email_sugerido or "").strip().lower()
    if email in roster_emails:
        return txn
    if txn.status != TransactionStatus.PENDING:
        return txn.model_copy(update={"user_email_sugerido": None})
    payer = txn.nome_pagador or UNKNOWN_PAYER
    return txn.model_copy(
        update={
            "status": TransactionStatus.USER_NOT_FOUND,
            "user_email_sugerido": None,
            "motivo_rejeicao": f'Pagador "{payer}" não encontrado na lista de participantes',
        }
    )


def parse_analysis(
    text: str,
    quota_value: Decimal,
    participants: Iterable[Participant],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> list[AnalyzedTransaction]:
    """Validate raw model text and return the credits it describes."""
    try:
        analysis = AIAnalysis.model_validate_json(strip_code_fences(text))
    except ValidationError as exc:
        raise AIAnalysisError(f"invalid model output: {exc.error_count()} errors") from exc

    roster_emails = {p.user_email.strip().lower() for p in participants}
    return [
        _enforce_roster(_enforce_quota_rule(txn, quota_value, tolerance), roster_emails)
        for txn in analysis.transacoes
        if txn.valor > 0
    ]


def analyze_with_ai(
    llm: TextModel,
    csv_text: str,
    quota_value: float | Decimal,
    participants: list[Participant],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> list[AnalyzedTransaction]:
    quota_value = to_decimal(quota_value)
    prompt = build_prompt(csv_text, quota_value, participants)
    try:
        completion = llm.generate(prompt)
    except LLMError as exc:
        raise AIAnalysisError(str(exc)) from exc

    transactions = parse_analysis(completion.text, quota_value, participants, tolerance)
    logger.info(
        "Gemini analysis: %d credits (%d tokens)", len(transactions), completion.tokens
    )
    return transactions
