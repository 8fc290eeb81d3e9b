"""AI agents used by the application workflow."""

from src.agents.answer_oracle import (
    NOT_AVAILABLE,
    NOT_SURE,
    AnswerOracle,
    OracleAnswer,
    OracleConstraint,
    OracleRequest,
)
from src.agents.base import BaseAgent

__all__ = [
    "AnswerOracle",
    "BaseAgent",
    "NOT_AVAILABLE",
    "NOT_SURE",
    "OracleAnswer",
    "OracleConstraint",
    "OracleRequest",
]
