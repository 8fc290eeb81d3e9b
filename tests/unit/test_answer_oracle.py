"""Unit tests for the answer oracle agent."""

import asyncio
import time
from unittest.mock import MagicMock, patch

import httpx
import pytest
from anthropic import APIConnectionError

from src.agents.answer_oracle import (
    NOT_AVAILABLE,
    NOT_SURE,
    AnswerOracle,
    OracleConstraint,
    OracleRequest,
    normalize_free_text,
    parse_yes_no,
)
from src.automation.errors import OracleUnavailable


def make_oracle(profile, response):
    client = MagicMock()
    client.messages.create.return_value = response
    return AnswerOracle(profile, client=client), client


class TestNormalization:
    """Tests for answer normalization."""

    def test_parse_yes_no(self):
        assert parse_yes_no("Yes") == "yes"
        assert parse_yes_no('"yes."') == "yes"
        assert parse_yes_no("No, I would not.") == "no"
        assert parse_yes_no("Not sure") == NOT_SURE
        assert parse_yes_no("Maybe") == NOT_SURE

    def test_uncertain_answer_becomes_not_sure(self):
        answer = normalize_free_text("I'm not sure what to say here.", "Salary expectations?")

        assert answer == NOT_SURE

    def test_short_or_echoed_answer_becomes_not_available(self):
        assert normalize_free_text("", "Website") == NOT_AVAILABLE
        assert normalize_free_text("N/A", "Website") == NOT_AVAILABLE
        assert normalize_free_text("Salary expectations", "Salary expectations") == NOT_AVAILABLE

    def test_long_answer_truncated(self):
        answer = normalize_free_text("word " * 100, "Tell us about yourself")

        assert len(answer) == 200
        assert answer.endswith("...")


class TestAnswerOracle:
    """Tests for AnswerOracle."""

    def test_oracle_properties(self, profile):
        """Test agent properties."""
        oracle = AnswerOracle(profile, client=MagicMock())

        assert oracle.name == "answer-oracle"
        assert "6 years of Python" in oracle.system_prompt
        assert "WORK AUTHORIZATION" in oracle.system_prompt

    @pytest.mark.asyncio
    async def test_ask_yes_no(self, profile, mock_anthropic_response):
        """Test a yes/no question with mocked Claude."""
        oracle, client = make_oracle(profile, mock_anthropic_response("Yes"))

        with patch("src.agents.base.langfuse_context"):
            answer = await oracle.ask_yes_no("Are you willing to travel?")

        assert answer == "yes"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 10
        assert kwargs["temperature"] == 0.3
        assert "Are you willing to travel?" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_ask_text(self, profile, mock_anthropic_response):
        """Test a free-text question with mocked Claude."""
        oracle, client = make_oracle(
            profile, mock_anthropic_response("I have six years of backend Python experience.")
        )

        with patch("src.agents.base.langfuse_context"):
            answer = await oracle.ask_text("Describe your Python experience", "textarea")

        assert answer == "I have six years of backend Python experience."
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 100
        assert kwargs["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_run_returns_structured_answer(self, profile, mock_anthropic_response):
        oracle, _ = make_oracle(profile, mock_anthropic_response("I don't know"))

        with patch("src.agents.base.langfuse_context"):
            result = await oracle.run(OracleRequest(question="Notice period?"))

        assert result.answer == NOT_SURE
        assert result.raw == "I don't know"
        assert result.constraint == OracleConstraint.FREE_TEXT
        assert result.is_sentinel is True

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_unavailable(self, profile):
        """Without an API key the oracle is unavailable, not crashing."""
        oracle = AnswerOracle(profile)

        with patch("src.agents.base.get_claude_client", side_effect=ValueError("no key")):
            with patch("src.agents.base.langfuse_context"):
                with pytest.raises(OracleUnavailable):
                    await oracle.ask_text("Why this company?")

    @pytest.mark.asyncio
    async def test_api_error_raises_unavailable(self, profile):
        client = MagicMock()
        client.messages.create.side_effect = APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )
        oracle = AnswerOracle(profile, client=client)

        with patch("src.agents.base.langfuse_context"):
            with pytest.raises(OracleUnavailable):
                await oracle.ask_yes_no("Are you willing to relocate?")

    @pytest.mark.asyncio
    async def test_slow_call_can_time_out(self, profile, mock_anthropic_response):
        """A slow completion leaves the event loop free, so callers can time out."""
        client = MagicMock()

        def slow_create(**kwargs):
            time.sleep(0.3)
            return mock_anthropic_response("Yes")

        client.messages.create.side_effect = slow_create
        oracle = AnswerOracle(profile, client=client)

        with patch("src.agents.base.langfuse_context"):
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(oracle.ask_yes_no("Are you willing to travel?"), 0.05)
