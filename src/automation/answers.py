"""Field answer resolution: deterministic rules first, AI oracle second.

Answers are cached per normalized question for the lifetime of the
resolver, so recurring boilerplate questions cost at most one oracle call
per run.
"""

import logging
import re
from enum import Enum

from pydantic import BaseModel

from src.agents.answer_oracle import NOT_SURE, AnswerOracle
from src.automation.errors import OracleUnavailable
from src.automation.models import CandidateProfile, FieldOption

logger = logging.getLogger(__name__)


class QuestionCategory(str, Enum):
    """Question categories answered without the oracle."""

    WORK_AUTHORIZATION = "work_authorization"
    PRIOR_EMPLOYMENT = "prior_employment"
    REMOTE_WORK = "remote_work"
    GENDER = "gender"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    FULL_NAME = "full_name"
    EMAIL = "email"
    PHONE = "phone"
    COUNTRY = "country"
    LOCATION = "location"


# Checked in order; the first match wins.
CATEGORY_PATTERNS: list[tuple[QuestionCategory, re.Pattern[str]]] = [
    (
        QuestionCategory.WORK_AUTHORIZATION,
        re.compile(
            r"\bvisas?\b|\bsponsor|work authori[sz]ation|authori[sz]ed to work|right to work"
            r"|eligible to work|legally (able|allowed|permitted) to work|work permit",
            re.I,
        ),
    ),
    (
        QuestionCategory.PRIOR_EMPLOYMENT,
        re.compile(
            r"\b(former|previous|ex-?|prior)\s*(employee|contractor|employ|intern)"
            r"|previously (worked|been employed)|worked (for|at) .* before",
            re.I,
        ),
    ),
    (QuestionCategory.REMOTE_WORK, re.compile(r"\bremote\b|\bwfh\b|work from home|telecommut", re.I)),
    (QuestionCategory.GENDER, re.compile(r"\bgender\b|\bsex\b", re.I)),
    (QuestionCategory.FIRST_NAME, re.compile(r"\bfirst\s*name|\bgiven name|\bforename", re.I)),
    (QuestionCategory.LAST_NAME, re.compile(r"\blast\s*name|\bsurname|\bfamily name", re.I)),
    (QuestionCategory.FULL_NAME, re.compile(r"^(full\s*|legal\s*)?name$", re.I)),
    (QuestionCategory.EMAIL, re.compile(r"\be-?mail\b", re.I)),
    (QuestionCategory.PHONE, re.compile(r"\b(tele)?phone\b|\bmobile\b", re.I)),
    (QuestionCategory.COUNTRY, re.compile(r"\b(country|nationality)\b", re.I)),
    (
        QuestionCategory.LOCATION,
        re.compile(r"\blocation\b|\bcity\b|where (are you|do you) (based|live)", re.I),
    ),
]

_AUTHORIZED_RE = re.compile(r"authori[sz]ed|eligible|right to work|legally|permit", re.I)
_NEGATION_RE = re.compile(r"^no\b|\bnot\b|n't\b")
_DECLINE_RE = re.compile(r"prefer not|decline|not sure|don't wish|do not wish|n/?a\b", re.I)

YES_SYNONYMS = ["yes", "i am", "i do", "i will", "i have", "true"]
NO_SYNONYMS = ["no", "i am not", "i do not", "i don't", "i will not", "false"]


def normalize_question(question: str) -> str:
    """Cache key for a question: lowercase words without punctuation or asterisks."""
    text = re.sub(r"[^a-z0-9]+", " ", question.lower())
    return " ".join(text.split())


def categorize(question: str) -> QuestionCategory | None:
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(question):
            return category
    return None


class AnswerSource(str, Enum):
    RULE = "rule"
    ORACLE = "oracle"
    CACHE = "cache"
    DEFAULT = "default"
    UNAVAILABLE = "unavailable"


class Resolution(BaseModel):
    """One answer decision, kept for inspection and tests."""

    question: str
    answer: str | None
    source: AnswerSource
    category: QuestionCategory | None = None


class FieldAnswerResolver:
    """Resolves answers for form questions.

    Args:
        profile: Candidate data behind the deterministic rules
        oracle: AI fallback; None disables AI answers entirely
    """

    def __init__(self, profile: CandidateProfile, oracle: AnswerOracle | None = None):
        self.profile = profile
        self.oracle = oracle
        self._cache: dict[str, str] = {}
        self.history: list[Resolution] = []

    @property
    def oracle_calls(self) -> int:
        return sum(1 for r in self.history if r.source == AnswerSource.ORACLE)

    def cached(self, question: str) -> str | None:
        return self._cache.get(normalize_question(question))

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _mentions_home_country(self, question: str) -> bool:
        lowered = question.lower()
        return any(
            re.search(rf"\b{re.escape(alias)}\b", lowered) for alias in self.profile.country_aliases
        )

    def _work_authorization_answer(self, question: str) -> str:
        home = self._mentions_home_country(question)
        if _AUTHORIZED_RE.search(question) and not re.search(r"sponsor|visa", question, re.I):
            authorized = home or not self.profile.needs_sponsorship_abroad
            return "yes" if authorized else "no"

        needs = self.profile.needs_sponsorship_home if home else self.profile.needs_sponsorship_abroad
        return "yes" if needs else "no"

    def rule_answer(self, question: str) -> tuple[str, QuestionCategory] | None:
        """Answer from the deterministic table, or None when no rule applies."""
        category = categorize(question)
        if category is None:
            return None

        p = self.profile
        answers = {
            QuestionCategory.PRIOR_EMPLOYMENT: "yes" if p.former_employee else "no",
            QuestionCategory.REMOTE_WORK: "yes" if p.open_to_remote else "no",
            QuestionCategory.GENDER: p.gender,
            QuestionCategory.FIRST_NAME: p.first_name,
            QuestionCategory.LAST_NAME: p.last_name,
            QuestionCategory.FULL_NAME: p.full_name,
            QuestionCategory.EMAIL: p.email,
            QuestionCategory.PHONE: p.phone,
            QuestionCategory.COUNTRY: p.country,
            QuestionCategory.LOCATION: p.location,
        }
        if category == QuestionCategory.WORK_AUTHORIZATION:
            answer = self._work_authorization_answer(question)
        else:
            answer = answers[category]

        if not answer:
            return None
        return answer, category

    # ------------------------------------------------------------------
    # Option matching
    # ------------------------------------------------------------------

    def _candidates(self, answer: str) -> list[str]:
        lowered = answer.lower()
        if lowered == "yes":
            return YES_SYNONYMS
        if lowered == "no":
            return NO_SYNONYMS
        if lowered in ("male", "man"):
            return ["male", "man"]
        if lowered in ("female", "woman"):
            return ["female", "woman"]
        if lowered in (self.profile.country.lower(), self.profile.location.lower()):
            return [lowered] + self.profile.country_aliases
        return [lowered]

    def match_option(self, options: list[FieldOption], answer: str) -> FieldOption | None:
        """Pick the option best matching ``answer``: exact, prefix, then whole word."""
        if not options:
            return None

        if answer == NOT_SURE:
            for option in options:
                if _DECLINE_RE.search(option.text):
                    return option
            answer = "no"

        candidates = self._candidates(answer)
        texts = [(o, o.text.strip().lower(), o.value.strip().lower()) for o in options]
        if answer.lower() == "yes":
            texts = [t for t in texts if not _NEGATION_RE.search(t[1])]

        for candidate in candidates:
            for option, text, value in texts:
                if candidate in (text, value):
                    return option
        for candidate in candidates:
            prefix = re.compile(rf"^{re.escape(candidate)}\b")
            for option, text, _ in texts:
                if prefix.match(text):
                    return option
        for candidate in candidates:
            pattern = re.compile(rf"\b{re.escape(candidate)}\b")
            for option, text, _ in texts:
                if pattern.search(text):
                    return option
        return None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _record(
        self,
        question: str,
        answer: str | None,
        source: AnswerSource,
        category: QuestionCategory | None = None,
    ) -> None:
        self.history.append(
            Resolution(question=question, answer=answer, source=source, category=category)
        )

    async def resolve_choice(self, question: str, options: list[FieldOption]) -> FieldOption | None:
        """Choose one of ``options`` for ``question``.

        Returns None when there are no options or the oracle is unavailable
        and no rule applies.
        """
        if not options:
            return None

        key = normalize_question(question)
        previous = self.cached(question)
        if previous is not None:
            option = self.match_option(options, previous)
            if option:
                self._record(question, option.text, AnswerSource.CACHE)
                return option

        rule = self.rule_answer(question)
        if rule is None and self.oracle is None:
            option = options[0]
            self._record(question, option.text, AnswerSource.DEFAULT)
            self._cache[key] = option.text
            return option

        option = None
        answer = ""
        source, category = AnswerSource.RULE, None
        if rule:
            answer, category = rule
            option = self.match_option(options, answer)
            if option is None and self.oracle is not None:
                logger.debug(f"Rule answer '{answer}' fits no option for '{question[:60]}'")

        if option is None and self.oracle is not None:
            try:
                answer = await self.oracle.ask_yes_no(question)
            except OracleUnavailable as e:
                logger.warning(f"Skipping choice '{question[:60]}': {e}")
                self._record(question, None, AnswerSource.UNAVAILABLE)
                return None
            source, category = AnswerSource.ORACLE, None
            option = self.match_option(options, answer)

        if option is None:
            logger.debug(f"No option matches '{answer}' for '{question[:60]}', using first")
            option = options[0]

        self._record(question, option.text, source, category)
        self._cache[key] = option.text
        return option

    async def resolve_text(self, question: str, field_type: str = "text") -> str | None:
        """Answer a free-text question. Returns None if no answer can be produced."""
        key = normalize_question(question)
        previous = self.cached(question)
        if previous is not None:
            self._record(question, previous, AnswerSource.CACHE)
            return previous

        rule = self.rule_answer(question)
        if rule:
            answer, category = rule
            self._record(question, answer, AnswerSource.RULE, category)
            self._cache[key] = answer
            return answer

        if self.oracle is None:
            self._record(question, None, AnswerSource.UNAVAILABLE)
            return None

        try:
            answer = await self.oracle.ask_text(question, field_type)
        except OracleUnavailable as e:
            logger.warning(f"Skipping text field '{question[:60]}': {e}")
            self._record(question, None, AnswerSource.UNAVAILABLE)
            return None

        self._record(question, answer, AnswerSource.ORACLE)
        self._cache[key] = answer
        return answer
