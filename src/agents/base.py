"""Base agent class with Langfuse observability."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from langfuse.decorators import langfuse_context, observe
from pydantic import BaseModel

from src.integrations.claude.client import ClaudeClient, get_claude_client, get_model_id

logger = logging.getLogger(__name__)

# Type variable for agent output
T = TypeVar("T", bound=BaseModel)


class BaseAgent(ABC, Generic[T]):
    """
    Base class for AI agents with Langfuse observability.

    Subclasses define `name` and `system_prompt` and implement `_execute`.
    The Claude client is created on first use, so constructing an agent
    never fails for lack of credentials; the first call does.
    """

    def __init__(
        self,
        claude_api_key: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        client: ClaudeClient | None = None,
    ):
        """
        Initialize the agent.

        Args:
            claude_api_key: Optional API key (uses env var if not provided, ignored for Bedrock).
            model: Claude model to use (auto-detected from settings if None).
            max_tokens: Default maximum tokens for a response.
            temperature: Default sampling temperature.
            client: Pre-built client, mainly for tests.
        """
        self._api_key = claude_api_key
        self._client = client
        self.model = model or get_model_id()
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def client(self) -> ClaudeClient:
        """Claude client, created lazily. Raises ValueError without credentials."""
        if self._client is None:
            self._client = get_claude_client(self._api_key)
        return self._client

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent name for tracing and logging."""
        pass

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """System prompt defining the agent's behavior."""
        pass

    @observe()
    async def run(self, input_data: Any, **kwargs: Any) -> T:
        """
        Execute the agent with full observability.

        Args:
            input_data: Input data for the agent (typically a Pydantic model).
            **kwargs: Additional parameters.

        Returns:
            Agent output (Pydantic model).
        """
        langfuse_context.update_current_trace(
            name=f"{self.name}-execution",
            metadata={"model": self.model},
        )

        input_dict = input_data.model_dump() if hasattr(input_data, "model_dump") else input_data
        langfuse_context.update_current_observation(input=input_dict)

        try:
            result = await self._execute(input_data, **kwargs)
            langfuse_context.update_current_observation(output=result.model_dump())
            return result

        except Exception as e:
            langfuse_context.update_current_observation(
                level="ERROR",
                status_message=str(e),
            )
            raise

    @abstractmethod
    async def _execute(self, input_data: Any, **kwargs: Any) -> T:
        """
        Implementation-specific execution logic.

        Args:
            input_data: Input data for the agent.
            **kwargs: Additional parameters.

        Returns:
            Agent output.
        """
        pass

    async def _call_claude(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """
        Make a single-turn Claude call and return its text.

        Args:
            prompt: User prompt.
            system: Optional system override (uses agent's system_prompt by default).
            max_tokens: Override for the agent's default.
            temperature: Override for the agent's default.

        Returns:
            Concatenated text blocks of the response.
        """
        max_tokens = max_tokens or self.max_tokens
        temperature = self.temperature if temperature is None else temperature

        # Sync SDK call, run off the event loop
        response = await asyncio.to_thread(
            self.client.messages.create,
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system or self.system_prompt,
            messages=[{"role": "user", "content": prompt}],
        )

        if response.usage:
            langfuse_context.update_current_observation(
                usage={
                    "input": response.usage.input_tokens,
                    "output": response.usage.output_tokens,
                },
                model=self.model,
            )

        text_content = ""
        for block in response.content:
            if block.type == "text":
                text_content += block.text

        logger.debug(f"{self.name}: {len(text_content)} chars from {self.model}")
        return text_content
