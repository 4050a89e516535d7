"""OpenAI chat-completions scoring provider."""

import logging

import openai

from src.core.errors import (
    MalformedResponseError,
    ScoringError,
    UpstreamAuthenticationError,
    UpstreamThrottledError,
)
from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)

_MAX_ERROR_DETAIL = 200


class OpenAIProvider(LLMProvider):
    """LLM provider using the OpenAI API in JSON-object mode."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def complete(
        self,
        user_text: str,
        model: str | None = None,
        *,
        system: str,
        api_key: str,
        timeout: float = 60.0,
        temperature: float = 0.3,
    ) -> str:
        # Retries disabled: every engine failure is permanent for this request.
        client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        use_model = model or self.default_model

        logger.info("Sending analysis payload to OpenAI API (%s)...", use_model)
        try:
            response = client.chat.completions.create(
                model=use_model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user_text},
                ],
                response_format={"type": "json_object"},
                temperature=temperature,
            )
        except openai.AuthenticationError as e:
            msg = "Invalid OpenAI API key"
            raise UpstreamAuthenticationError(msg) from e
        except openai.RateLimitError as e:
            msg = "OpenAI API rate limit exceeded"
            raise UpstreamThrottledError(msg) from e
        except openai.APITimeoutError as e:
            msg = "OpenAI API request timed out"
            raise ScoringError(msg) from e
        except openai.APIError as e:
            logger.error("OpenAI API error: %s", e)
            msg = f"OpenAI API error: {str(e.message)[:_MAX_ERROR_DETAIL]}"
            raise ScoringError(msg) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            msg = "No response content from OpenAI"
            raise MalformedResponseError(msg)
        return content
