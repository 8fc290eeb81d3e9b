"""Claude SDK client wrapper - supports both Anthropic API and AWS Bedrock."""

from typing import Union

from anthropic import Anthropic, AnthropicBedrock

from src.config import settings

# Type alias for client types
ClaudeClient = Union[Anthropic, AnthropicBedrock]


def get_claude_client(api_key: str | None = None) -> ClaudeClient:
    """
    Get Claude client instance - Bedrock or direct Anthropic API.

    Args:
        api_key: Optional API key (only used for direct Anthropic, ignored for Bedrock).

    Returns:
        Configured client (AnthropicBedrock if BEDROCK_ENABLED, else Anthropic).

    Raises:
        ValueError: If no API key is available and Bedrock is not enabled.
    """
    if settings.bedrock_enabled:
        # Uses AWS credentials from environment/~/.aws/credentials
        return AnthropicBedrock(aws_region=settings.bedrock_region)

    key = api_key or settings.anthropic_api_key
    if not key:
        raise ValueError(
            "Anthropic API key is required when Bedrock is not enabled. "
            "Set ANTHROPIC_API_KEY environment variable or enable BEDROCK_ENABLED=true."
        )
    return Anthropic(api_key=key)


def get_model_id() -> str:
    """Get the model ID for the configured backend."""
    if settings.bedrock_enabled:
        return settings.bedrock_model_id
    return settings.claude_model
