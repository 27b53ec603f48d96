from bolao.schemas.base import (  # noqa: F401
    AI_STATUSES,
    AIAnalysis,
    Analysis,
    AnalysisSummary,
    AnalyzedTransaction,
    ImportedTransactionResponse,
    ImportResponse,
    Participant,
    TransactionReview,
    TransactionStatus,
)
