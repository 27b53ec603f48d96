from bolao.models.pool import PoolModel, ParticipationModel  # noqa: F401
from bolao.models.transaction import ImportedTransactionModel  # noqa: F401
from bolao.models.community import (  # noqa: F401
    AuthorizedEmailModel,
    CommentModel,
    DomainConfigModel,
)
from bolao.models.agent import AgentModel, AgentExecutionModel  # noqa: F401
from bolao.models.poll import PollModel, PollVoteModel  # noqa: F401
