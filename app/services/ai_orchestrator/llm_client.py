"""
Async chat-completion client for the generation service.
Lightweight wrapper over the OpenAI SDK; Groq is reached through its
OpenAI-compatible endpoint.
"""

import os
import logging
from typing import Optional
from openai import AsyncOpenAI
from openai import APIError, RateLimitError, APITimeoutError

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

DEFAULT_MODELS = {
    "groq": "llama-3.3-70b-versatile",
    "openai": "gpt-4o-mini",
}


class LLMClient:
    """
    Async wrapper for chat completions with token budget management.

    Design principles:
    - Token-efficient: the monitor already bounds the context window
    - Fast: async, never blocks the event loop the monitors run on
    - Resilient: retries rate limits and timeouts
    """

    # Token limits (conservative for cost management)
    MAX_INPUT_TOKENS = 1000   # ~700 chars of context window + instructions
    MAX_OUTPUT_TOKENS = 300   # A handful of suggestions, not an essay

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        provider: str = "groq",
    ):
        """
        Initialize the client.

        Args:
            api_key: Provider API key (defaults to GROQ_API_KEY / OPENAI_API_KEY)
            model: Model name (defaults per provider)
            provider: "groq" or "openai"
        """
        provider = provider.lower()
        if provider not in DEFAULT_MODELS:
            raise ValueError(f"Unsupported LLM provider: {provider}")

        env_var = "GROQ_API_KEY" if provider == "groq" else "OPENAI_API_KEY"
        self.api_key = api_key or os.getenv(env_var)
        if not self.api_key:
            raise ValueError(
                f"{provider} API key required. Set {env_var} environment variable "
                "or pass api_key parameter."
            )

        if provider == "groq":
            self.client = AsyncOpenAI(base_url=GROQ_BASE_URL, api_key=self.api_key)
        else:
            self.client = AsyncOpenAI(api_key=self.api_key)

        self.provider = provider
        self.model = model or DEFAULT_MODELS[provider]

        logger.info(f"LLMClient initialized - provider: {provider}, model: {self.model}")

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_retries: int = 2,
    ) -> str:
        """
        Generate a completion with retry on transient failures.

        Returns:
            Generated response text

        Raises:
            RuntimeError: If the request fails or all retries are exhausted
        """
        # Rough estimation: ~4 chars per token
        estimated_input_tokens = (len(system_prompt) + len(user_prompt)) // 4
        if estimated_input_tokens > self.MAX_INPUT_TOKENS:
            logger.warning(
                f"Input may exceed token budget: ~{estimated_input_tokens} tokens "
                f"(limit: {self.MAX_INPUT_TOKENS})"
            )

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        for attempt in range(max_retries + 1):
            try:
                logger.debug(f"Requesting completion (attempt {attempt + 1}/{max_retries + 1})")

                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=self.MAX_OUTPUT_TOKENS,
                    timeout=10.0,
                )

                content = response.choices[0].message.content

                usage = response.usage
                if usage is not None:
                    logger.info(
                        f"Completion successful - Tokens: {usage.prompt_tokens} in, "
                        f"{usage.completion_tokens} out, {usage.total_tokens} total"
                    )

                return content or ""

            except RateLimitError as e:
                logger.warning(f"Rate limit hit (attempt {attempt + 1}): {e}")
                if attempt == max_retries:
                    raise RuntimeError("LLM rate limit exceeded. Try again later.")

            except APITimeoutError as e:
                logger.warning(f"Timeout (attempt {attempt + 1}): {e}")
                if attempt == max_retries:
                    raise RuntimeError("LLM request timed out. Try again later.")

            except APIError as e:
                logger.error(f"LLM API error: {e}")
                raise RuntimeError(f"AI service error: {str(e)}")

            except Exception as e:
                logger.error(f"Unexpected error in LLM completion: {e}")
                raise RuntimeError(f"Failed to generate response: {str(e)}")

        raise RuntimeError("Failed to get completion after all retries")
