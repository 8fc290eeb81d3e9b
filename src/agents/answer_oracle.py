"""Answer oracle: last-resort answers to application questions via Claude."""

import logging
import re
from enum import Enum
from typing import Any

from anthropic import APIError
from pydantic import BaseModel

from src.agents.base import BaseAgent
from src.automation.errors import OracleUnavailable
from src.automation.models import CandidateProfile

logger = logging.getLogger(__name__)

NOT_SURE = "Not sure"
NOT_AVAILABLE = "Not available"

MAX_ANSWER_LENGTH = 200
MIN_ANSWER_LENGTH = 10

UNCERTAIN_PHRASES = [
    "i'm not sure",
    "i am not sure",
    "i don't know",
    "i do not know",
    "i cannot",
    "i can't",
    "unable to",
    "insufficient information",
    "not enough information",
    "i don't have",
    "i do not have",
    "as an ai",
]

_YES_RE = re.compile(r"^(yes|y)\b", re.IGNORECASE)
_NO_RE = re.compile(r"^(no|n)\b", re.IGNORECASE)


# ============================================================================
# Input/Output Models
# ============================================================================


class OracleConstraint(str, Enum):
    """Shape of answer the oracle must give."""

    YES_NO = "yes_no"
    FREE_TEXT = "free_text"


class OracleRequest(BaseModel):
    question: str
    constraint: OracleConstraint = OracleConstraint.FREE_TEXT
    field_type: str = "text"


class OracleAnswer(BaseModel):
    question: str
    answer: str
    raw: str = ""
    constraint: OracleConstraint = OracleConstraint.FREE_TEXT

    @property
    def is_sentinel(self) -> bool:
        return self.answer in (NOT_SURE, NOT_AVAILABLE)


# ============================================================================
# Normalization
# ============================================================================


def normalize_free_text(raw: str, question: str) -> str:
    """Turn a raw completion into a submittable answer or a sentinel.

    Hedging or refusal maps to ``NOT_SURE``; empty, very short or echoed
    answers map to ``NOT_AVAILABLE``; long answers are truncated.
    """
    answer = raw.strip().strip('"').strip()
    lowered = answer.lower()

    if any(phrase in lowered for phrase in UNCERTAIN_PHRASES):
        return NOT_SURE

    if (
        not answer
        or len(answer) < MIN_ANSWER_LENGTH
        or lowered == question.strip().lower()
    ):
        return NOT_AVAILABLE

    if len(answer) > MAX_ANSWER_LENGTH:
        answer = answer[: MAX_ANSWER_LENGTH - 3] + "..."

    return answer


def parse_yes_no(raw: str) -> str:
    """Map a completion to "yes", "no" or ``NOT_SURE``."""
    answer = raw.strip().strip('"').strip()
    if _YES_RE.match(answer):
        return "yes"
    if _NO_RE.match(answer):
        return "no"
    return NOT_SURE


# ============================================================================
# Agent
# ============================================================================


class AnswerOracle(BaseAgent[OracleAnswer]):
    """
    Answers application questions the deterministic rules cannot.

    Grounded in the candidate's resume and work-authorization facts. Every
    answer is normalized before it leaves the agent; callers never see raw
    completion text.

    Usage:
        oracle = AnswerOracle(profile)
        answer = await oracle.ask_yes_no("Are you willing to relocate?")
    """

    def __init__(self, profile: CandidateProfile, **kwargs: Any):
        super().__init__(**kwargs)
        self.profile = profile

    @property
    def name(self) -> str:
        return "answer-oracle"

    @property
    def system_prompt(self) -> str:
        resume = self.profile.resume_text or "(no resume provided)"
        return f"""You are filling in a job application on behalf of a candidate.
Answer each question as the candidate, briefly and truthfully, using only the
information below. Never invent experience the resume does not show.

CANDIDATE RESUME:
{resume}

WORK AUTHORIZATION:
{self.profile.work_authorization_summary()}"""

    async def _execute(self, input_data: OracleRequest, **kwargs: Any) -> OracleAnswer:
        if input_data.constraint == OracleConstraint.YES_NO:
            prompt = (
                f"Question: {input_data.question}\n\n"
                "Answer with exactly one word: yes or no."
            )
            raw = await self._call_claude(prompt, max_tokens=10, temperature=0.3)
            answer = parse_yes_no(raw)
        else:
            prompt = (
                f"Question: {input_data.question}\n"
                f"Field type: {input_data.field_type}\n\n"
                "Give a concise answer (one or two sentences, under 200 characters). "
                "Return only the answer text."
            )
            raw = await self._call_claude(prompt, max_tokens=100, temperature=0.7)
            answer = normalize_free_text(raw, input_data.question)

        return OracleAnswer(
            question=input_data.question,
            answer=answer,
            raw=raw,
            constraint=input_data.constraint,
        )

    async def ask(self, request: OracleRequest) -> OracleAnswer:
        """Run the agent, converting client and API errors to ``OracleUnavailable``."""
        try:
            return await self.run(request)
        except ValueError as e:
            raise OracleUnavailable(f"Oracle not configured: {e}") from e
        except APIError as e:
            raise OracleUnavailable(f"Oracle call failed: {e}") from e

    async def ask_yes_no(self, question: str) -> str:
        answer = await self.ask(OracleRequest(question=question, constraint=OracleConstraint.YES_NO))
        logger.info(f"Oracle yes/no for '{question[:60]}': {answer.answer}")
        return answer.answer

    async def ask_text(self, question: str, field_type: str = "text") -> str:
        answer = await self.ask(OracleRequest(question=question, field_type=field_type))
        if answer.is_sentinel:
            logger.info(f"Oracle had no usable answer for '{question[:60]}': {answer.answer}")
        else:
            logger.info(f"Oracle answer for '{question[:60]}': {answer.answer[:60]}")
        return answer.answer
