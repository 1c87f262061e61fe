"""
LLM client for sending prompts to Claude or OpenAI.

Uses OpenAI Python SDK which supports both OpenAI and Anthropic models,
providing a unified interface for both providers.
"""

import logging
from typing import Optional
from openai import OpenAI

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Client for interacting with LLM providers.

    Uses OpenAI SDK which natively supports both OpenAI and Anthropic models
    through a unified interface.
    """

    def __init__(
        self,
        provider: str,
        model: str,
        api_key: str,
        temperature: float = 0.0,
        max_tokens: int = 512,
        timeout: float = 20.0
    ):
        """
        Initialize LLM client.

        Args:
            provider: LLM provider - 'anthropic' or 'openai'
            model: Model name (e.g., 'claude-3-5-haiku-20241022', 'gpt-4o-mini')
            api_key: API key for the provider
            temperature: Sampling temperature (0.0 to 1.0, default 0.0 for deterministic output)
            max_tokens: Maximum tokens in response. Keyword lists are short.
                       Note: max_tokens is required for Anthropic API and cannot be omitted
            timeout: Request timeout in seconds; this runs inside an API request

        Raises:
            ValueError: If provider is not supported or API key is missing
        """
        self.provider = provider.lower()
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        # Validate provider
        if self.provider not in ["anthropic", "openai"]:
            raise ValueError(f"Unsupported provider: {provider}. Must be 'anthropic' or 'openai'")

        # Validate API key
        if not api_key:
            raise ValueError(f"{provider} API key is required but not provided")

        # For Anthropic, OpenAI SDK uses base_url and api_key
        if self.provider == "anthropic":
            self.client = OpenAI(
                api_key=api_key,
                base_url="https://api.anthropic.com/v1",
                timeout=timeout
            )
        else:
            self.client = OpenAI(api_key=api_key, timeout=timeout)

        logger.info(f"Initialized LLMClient: provider={provider}, model={model}")

    def send_prompt(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Send a prompt to the LLM and get a text response.

        Args:
            prompt: The prompt text to send
            system: Optional system message

        Returns:
            Text response from the LLM (empty string if the LLM returned nothing)

        Raises:
            Exception: If API call fails (auth, rate limit, etc.)
        """
        try:
            logger.debug(f"Sending prompt to {self.provider} ({len(prompt)} chars)")

            messages = [{"role": "user", "content": prompt}]
            if system:
                messages.insert(0, {"role": "system", "content": system})

            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )

            response_text = response.choices[0].message.content or ""

            # Log token usage
            if hasattr(response, "usage") and response.usage:
                logger.info(
                    f"LLM usage: {response.usage.prompt_tokens} prompt tokens, "
                    f"{response.usage.completion_tokens} completion tokens, "
                    f"{response.usage.total_tokens} total"
                )

            logger.debug(f"Received response from {self.provider} ({len(response_text)} chars)")
            return response_text

        except Exception as e:
            logger.error(f"LLM API call failed: {e}")
            raise
