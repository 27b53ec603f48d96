"""
Unit tests for the reconciliation pipeline — amounts, hashing, matcher,
fallback parser, Gemini analyzer, full reconcile, comment moderation.
"""
from datetime import date
from decimal import Decimal

import pytest

from bolao.llm import LLMError, extract_json_object, strip_code_fences
from bolao.pipeline import DUPLICATE_NOTE, reconcile, summarize, suppress_repeats
from bolao.pipeline.ai_analyzer import AIAnalysisError, analyze_with_ai, build_prompt, parse_analysis
from bolao.pipeline.amounts import parse_amount, quota_breakdown
from bolao.pipeline.hashing import transaction_hash
from bolao.pipeline.matcher import UNKNOWN_PAYER, extract_payer_name, match_participant, normalize_name
from bolao.pipeline.moderation import INAPPROPRIATE, moderate_basic, moderate_comment
from bolao.pipeline.statement_parser import analyze_statement, split_columns
from bolao.schemas import AnalyzedTransaction, Participant, TransactionStatus

from conftest import FakeLLM

ROSTER = [
    Participant(user_id="u1", user_email="joao@x.com", user_name="João Silva"),
    Participant(user_id="u2", user_email="maria@x.com", user_name="Maria Souza"),
]

ROW = '"15/01/2024","PIX recebido de JOAO SILVA","R$ 30,00"'
STATEMENT = (
    "Data,Descrição,Valor\n"
    f"{ROW}\n"
    '"16/01/2024","PIX enviado para LOJA","-R$ 50,00"\n'
    '"17/01/2024","PIX recebido de Empresa XYZ Ltda","R$ 20,00"\n'
    '"18/01/2024","PIX recebido de MARIA SOUZA","R$ 25,00"\n'
)

AI_RESPONSE = """```json
{
  "transacoes": [
    {"data_transacao": "2024-01-15", "valor": 30.0,
     "descricao_original": "PIX recebido de JOAO SILVA", "nome_pagador": "João Silva",
     "documento_pagador": null, "tipo_transacao": "pix_entrada", "cotas_identificadas": 3,
     "status": "pendente", "confianca_ia": 0.95, "observacao_ia": "3 cotas identificadas",
     "motivo_rejeicao": null, "user_email_sugerido": "joao@x.com"},
    {"data_transacao": "2024-01-18", "valor": 25.0,
     "descricao_original": "PIX recebido de MARIA SOUZA", "nome_pagador": "Maria Souza",
     "documento_pagador": null, "tipo_transacao": "pix_entrada", "cotas_identificadas": 2,
     "status": "pending", "confianca_ia": 0.9, "observacao_ia": "",
     "motivo_rejeicao": null, "user_email_sugerido": "maria@x.com"}
  ],
  "resumo": {"total_depositos": 2}
}
```"""


def ai_row(status="pending", valor="30.0", email="joao@x.com"):
    """One-transaction model answer for the ROW deposit."""
    suggested = "null" if email is None else f'"{email}"'
    return (
        '{"transacoes": [{"data_transacao": "15/01/2024", "valor": %s, '
        '"descricao_original": "PIX recebido de JOAO SILVA", "nome_pagador": "JOAO SILVA", '
        '"status": "%s", "user_email_sugerido": %s}]}' % (valor, status, suggested)
    )


# =====================================================================
# Amounts
# =====================================================================
class TestAmounts:
    @pytest.mark.parametrize(
        "token, expected",
        [
            ("R$ 30,00", Decimal("30.00")),
            ("1.234,56", Decimal("1234.56")),
            ("1234.56", Decimal("1234.56")),
            ("1.000", Decimal("1000")),
            ("30", Decimal("30")),
            ("-R$ 50,00", Decimal("-50.00")),
            ("50,00 D", Decimal("-50.00")),
            ("50,00 C", Decimal("50.00")),
        ],
    )
    def test_parse_amount(self, token, expected):
        assert parse_amount(token) == expected

    @pytest.mark.parametrize("token", ["15/01/2024", "2024-01-15", "PIX recebido", ""])
    def test_not_monetary(self, token):
        assert parse_amount(token) is None

    def test_exact_multiple(self):
        assert quota_breakdown(30, 10) == (3, True)

    def test_not_a_multiple(self):
        assert quota_breakdown(30, 12.5) == (0, False)
        assert quota_breakdown(25, 10) == (0, False)

    def test_decimal_arithmetic(self):
        # 0.3 % 0.1 is not ~0 in binary floating point
        assert quota_breakdown(0.3, 0.1) == (3, True)

    def test_remainder_within_tolerance(self):
        assert quota_breakdown(Decimal("30.005"), 10) == (3, True)

    def test_rejects_non_positive_quota(self):
        with pytest.raises(ValueError):
            quota_breakdown(30, 0)

    def test_rejects_non_finite_amount(self):
        with pytest.raises(ValueError):
            quota_breakdown(Decimal("Infinity"), 10)

    def test_amount_beyond_precision_is_not_a_multiple(self):
        assert quota_breakdown(Decimal("1" * 40), 10) == (0, False)


# =====================================================================
# Hashing
# =====================================================================
class TestHashing:
    def test_deterministic(self):
        a = transaction_hash("15/01/2024", 30.0, "PIX recebido de JOAO SILVA")
        b = transaction_hash("15/01/2024", 30.0, "PIX recebido de JOAO SILVA")
        assert a == b
        assert len(a) == 32

    def test_amount_formatting_is_normalized(self):
        assert transaction_hash("15/01/2024", 30, "x") == transaction_hash("15/01/2024", 30.0, "x")
        assert transaction_hash("15/01/2024", 30, "x") == transaction_hash("15/01/2024", "30.00", "x")

    def test_case_and_surrounding_space_ignored(self):
        assert transaction_hash("15/01/2024", 30, " PIX ") == transaction_hash("15/01/2024", 30, "pix")

    def test_each_field_changes_hash(self):
        base = transaction_hash("15/01/2024", 30, "pix")
        assert transaction_hash("16/01/2024", 30, "pix") != base
        assert transaction_hash("15/01/2024", 31, "pix") != base
        assert transaction_hash("15/01/2024", 30, "pix 2") != base


# =====================================================================
# Matcher
# =====================================================================
class TestMatcher:
    def test_normalize_name(self):
        assert normalize_name("  João   SILVA ") == "joao silva"

    def test_extract_payer(self):
        assert extract_payer_name(["15/01/2024", "PIX recebido de JOAO SILVA", "30"]) == "JOAO SILVA"
        assert extract_payer_name(["Pagador: Maria Souza"]) == "Maria Souza"
        assert extract_payer_name(["transfer from Jane Doe"]) == "Jane Doe"

    def test_first_prefix_wins(self):
        assert extract_payer_name(["PIX de Ana", "TED de Bruno"]) == "Ana"

    def test_extract_unknown(self):
        assert extract_payer_name(["PIX recebido", "30,00"]) == UNKNOWN_PAYER

    def test_accent_insensitive_match(self):
        assert match_participant("JOAO SILVA", ROSTER).user_email == "joao@x.com"

    def test_containment_both_directions(self):
        assert match_participant("Joao", ROSTER).user_email == "joao@x.com"
        assert match_participant("Maria Souza Lima", ROSTER).user_email == "maria@x.com"

    def test_no_match(self):
        assert match_participant("Empresa XYZ Ltda", ROSTER) is None
        assert match_participant(UNKNOWN_PAYER, ROSTER) is None

    def test_blank_roster_names_never_match(self):
        roster = [Participant(user_email="anon@x.com", user_name=None)]
        assert match_participant("Qualquer Pessoa", roster) is None


# =====================================================================
# Fallback statement parser
# =====================================================================
class TestStatementParser:
    def test_split_quoted_commas(self):
        assert split_columns(ROW) == ["15/01/2024", "PIX recebido de JOAO SILVA", "R$ 30,00"]

    def test_split_semicolon(self):
        assert split_columns("15/01/2024;PIX de Ana;30,00") == ["15/01/2024", "PIX de Ana", "30,00"]

    def test_example_row_is_pending(self):
        [txn] = analyze_statement(ROW, 10.0, ROSTER)
        assert txn.valor == 30.0
        assert txn.cotas_identificadas == 3
        assert txn.status == TransactionStatus.PENDING
        assert txn.user_email_sugerido == "joao@x.com"
        assert txn.tipo_transacao == "pix_entrada"
        assert txn.data_transacao == "15/01/2024"
        assert txn.confianca_ia == 0.5

    def test_not_a_multiple_is_invalid(self):
        [txn] = analyze_statement(ROW, 12.5, ROSTER)
        assert txn.status == TransactionStatus.INVALID
        assert txn.cotas_identificadas == 0
        assert "não é múltiplo" in txn.motivo_rejeicao

    def test_unknown_payer(self):
        [txn] = analyze_statement(
            '"17/01/2024","PIX recebido de Empresa XYZ Ltda","R$ 20,00"', 10.0, ROSTER
        )
        assert txn.status == TransactionStatus.USER_NOT_FOUND
        assert txn.user_email_sugerido is None
        assert txn.nome_pagador == "Empresa XYZ Ltda"

    def test_empty_roster(self):
        [txn] = analyze_statement(ROW, 10.0, [])
        assert txn.status == TransactionStatus.USER_NOT_FOUND

    def test_header_and_debits_skipped_order_kept(self):
        txns = analyze_statement(STATEMENT, 10.0, ROSTER)
        assert [t.data_transacao for t in txns] == ["15/01/2024", "17/01/2024", "18/01/2024"]
        assert [t.status for t in txns] == [
            TransactionStatus.PENDING,
            TransactionStatus.USER_NOT_FOUND,
            TransactionStatus.INVALID,
        ]

    def test_short_rows_skipped(self):
        assert analyze_statement("PIX de Ana;30,00\n\n", 10.0, ROSTER) == []

    def test_non_pix_credit(self):
        [txn] = analyze_statement('"15/01/2024","TED de JOAO SILVA","R$ 30,00"', 10.0, ROSTER)
        assert txn.tipo_transacao == "outro"
        assert txn.status == TransactionStatus.PENDING

    def test_missing_date_defaults_to_today(self):
        [txn] = analyze_statement('"PIX recebido de JOAO SILVA","R$ 30,00","ok"', 10.0, ROSTER)
        assert txn.data_transacao == date.today().isoformat()


# =====================================================================
# Gemini analyzer
# =====================================================================
class TestAIAnalyzer:
    def test_prompt_mentions_quota_and_roster(self):
        prompt = build_prompt(ROW, Decimal("10"), ROSTER)
        assert "R$ 10.00" in prompt
        assert "João Silva (joao@x.com)" in prompt
        assert ROW in prompt

    def test_prompt_without_roster(self):
        assert "Nenhum participante cadastrado ainda" in build_prompt(ROW, Decimal("10"), [])

    def test_parse_fenced_json_and_normalize_status(self):
        txns = parse_analysis(AI_RESPONSE, Decimal("10"), ROSTER)
        assert len(txns) == 2
        assert txns[0].status == TransactionStatus.PENDING
        assert txns[0].cotas_identificadas == 3

    def test_quota_rule_overrides_model(self):
        txns = parse_analysis(AI_RESPONSE, Decimal("10"), ROSTER)
        assert txns[1].status == TransactionStatus.INVALID
        assert txns[1].cotas_identificadas == 0
        assert txns[1].motivo_rejeicao

    def test_garbage_raises(self):
        with pytest.raises(AIAnalysisError):
            parse_analysis("Desculpe, não consegui analisar.", Decimal("10"), ROSTER)

    def test_unknown_status_raises(self):
        bad = '{"transacoes": [{"data_transacao": "x", "valor": 10, "status": "talvez"}]}'
        with pytest.raises(AIAnalysisError):
            parse_analysis(bad, Decimal("10"), ROSTER)

    def test_llm_error_raises(self):
        with pytest.raises(AIAnalysisError):
            analyze_with_ai(FakeLLM(error=LLMError("timeout")), ROW, 10, ROSTER)

    @pytest.mark.parametrize("status", ["approved", "aprovado", "ignored", "ignorado"])
    def test_model_cannot_approve_or_ignore(self, status):
        with pytest.raises(AIAnalysisError):
            parse_analysis(ai_row(status=status), Decimal("10"), ROSTER)

    @pytest.mark.parametrize("valor", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_amount_raises(self, valor):
        with pytest.raises(AIAnalysisError):
            parse_analysis(ai_row(valor=valor), Decimal("10"), ROSTER)

    def test_huge_amount_is_invalid(self):
        [txn] = parse_analysis(ai_row(valor="1e300"), Decimal("10"), ROSTER)
        assert txn.status == TransactionStatus.INVALID
        assert txn.cotas_identificadas == 0

    def test_suggested_email_outside_roster_is_unmatched(self):
        [txn] = parse_analysis(ai_row(email="intruso@x.com"), Decimal("10"), ROSTER)
        assert txn.status == TransactionStatus.USER_NOT_FOUND
        assert txn.user_email_sugerido is None
        assert "não encontrado" in txn.motivo_rejeicao

    def test_pending_without_email_is_unmatched(self):
        [txn] = parse_analysis(ai_row(email=None), Decimal("10"), ROSTER)
        assert txn.status == TransactionStatus.USER_NOT_FOUND

    def test_roster_email_compared_case_insensitively(self):
        [txn] = parse_analysis(ai_row(email="JOAO@X.COM"), Decimal("10"), ROSTER)
        assert txn.status == TransactionStatus.PENDING


# =====================================================================
# Full reconcile
# =====================================================================
class TestReconcile:
    def test_fallback_without_llm(self):
        analysis = reconcile(STATEMENT, 10.0, ROSTER)
        assert analysis.resumo.total_depositos == 3
        assert analysis.resumo.depositos_validos == 1
        assert analysis.resumo.depositos_invalidos == 1
        assert analysis.resumo.usuarios_nao_encontrados == 1
        assert analysis.resumo.total_valor == 75.0
        assert analysis.resumo.cotas_identificadas == 5
        assert all(t.hash_transacao for t in analysis.transacoes)

    def test_uses_ai_when_valid(self):
        llm = FakeLLM(AI_RESPONSE)
        analysis = reconcile(STATEMENT, 10.0, ROSTER, llm=llm)
        assert len(llm.prompts) == 1
        assert analysis.transacoes[0].confianca_ia == 0.95
        assert analysis.resumo.total_depositos == 2

    def test_falls_back_on_bad_ai_output(self):
        analysis = reconcile(STATEMENT, 10.0, ROSTER, llm=FakeLLM("not json"))
        assert analysis.resumo.total_depositos == 3
        assert analysis.transacoes[0].observacao_ia == "Análise básica (sem IA)"

    def test_falls_back_on_llm_error(self):
        analysis = reconcile(ROW, 10.0, ROSTER, llm=FakeLLM(error=LLMError("503")))
        assert analysis.transacoes[0].status == TransactionStatus.PENDING

    def test_reimport_is_idempotent(self):
        first = reconcile(STATEMENT, 10.0, ROSTER)
        hashes = {t.hash_transacao for t in first.transacoes}
        second = reconcile(STATEMENT, 10.0, ROSTER, hashes)
        assert all(t.status == TransactionStatus.IGNORED for t in second.transacoes)
        assert all(t.observacao_ia == DUPLICATE_NOTE for t in second.transacoes)
        assert second.resumo.ja_processados == len(first.transacoes)
        assert second.resumo.depositos_validos == 0

    def test_repeat_inside_same_upload_ignored(self):
        analysis = reconcile(f"{ROW}\n{ROW}\n", 10.0, ROSTER)
        assert [t.status for t in analysis.transacoes] == [
            TransactionStatus.PENDING,
            TransactionStatus.IGNORED,
        ]

    def test_repeat_suppression_overrides_ai(self):
        txns = parse_analysis(AI_RESPONSE, Decimal("10"), ROSTER)
        digest = transaction_hash(txns[0].data_transacao, txns[0].valor, txns[0].descricao_original)
        result = suppress_repeats(txns, {digest})
        assert result[0].status == TransactionStatus.IGNORED
        assert result[1].status == TransactionStatus.INVALID

    @pytest.mark.parametrize("status", ["aprovado", "ignorado"])
    def test_forbidden_model_status_falls_back(self, status):
        analysis = reconcile(ROW, 10.0, ROSTER, llm=FakeLLM(ai_row(status=status)))
        [txn] = analysis.transacoes
        assert txn.status == TransactionStatus.PENDING
        assert txn.observacao_ia == "Análise básica (sem IA)"
        assert txn.ja_processada is False

    def test_infinite_model_amount_falls_back(self):
        analysis = reconcile(ROW, 10.0, ROSTER, llm=FakeLLM(ai_row(valor="Infinity")))
        assert analysis.transacoes[0].valor == 30.0

    def test_repeats_are_flagged(self):
        first = reconcile(ROW, 10.0, ROSTER)
        assert first.transacoes[0].ja_processada is False
        second = reconcile(ROW, 10.0, ROSTER, {first.transacoes[0].hash_transacao})
        assert second.transacoes[0].ja_processada is True
        assert "ja_processada" not in second.transacoes[0].model_dump()

    def test_summarize_empty(self):
        summary = summarize([])
        assert summary.total_depositos == 0
        assert summary.total_valor == 0.0

    @pytest.mark.parametrize("amount, quota", [(30, 10), (45, 15), (100, 12.5), (7.5, 2.5)])
    def test_multiples_are_never_invalid(self, amount, quota):
        txn = AnalyzedTransaction(
            data_transacao="2024-01-01", valor=amount, status=TransactionStatus.PENDING
        )
        [out] = parse_analysis(
            '{"transacoes": [%s]}' % txn.model_dump_json(), Decimal(str(quota)), ROSTER
        )
        assert out.status != TransactionStatus.INVALID
        assert out.cotas_identificadas == int(amount // quota)


# =====================================================================
# LLM helpers
# =====================================================================
class TestLLMHelpers:
    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_extract_json_object(self):
        assert extract_json_object('Claro! {"titulo": "Oi"} Espero ter ajudado') == {"titulo": "Oi"}

    def test_extract_json_object_missing(self):
        with pytest.raises(ValueError):
            extract_json_object("sem json aqui")

    def test_extract_json_object_optional(self):
        assert extract_json_object("sem json aqui", required=False) == {}
        with pytest.raises(ValueError):
            extract_json_object("{titulo: sem aspas}", required=False)


# =====================================================================
# Moderation
# =====================================================================
class TestModeration:
    def test_clean_message(self):
        assert moderate_basic("Ótima ideia, vamos participar!").aprovado is True

    def test_blocked_word(self):
        result = moderate_basic("Que ideia IDIOTA")
        assert result.aprovado is False
        assert result.motivo == INAPPROPRIATE

    def test_ai_decision(self):
        llm = FakeLLM('{"aprovado": false, "motivo": "Spam"}')
        result = moderate_comment("Compre já!!!", llm)
        assert result.aprovado is False
        assert result.motivo == "Spam"

    def test_ai_failure_falls_back(self):
        assert moderate_comment("Boa sorte a todos", FakeLLM("???")).aprovado is True
        assert moderate_comment("seu lixo", FakeLLM(error=LLMError("x"))).aprovado is False
