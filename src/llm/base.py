"""Abstract base class for scoring-engine (LLM) providers."""

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Base class that every scoring-engine provider must implement.

    Implementations translate their SDK's failures into the UpstreamError
    hierarchy from ``src.core.errors`` so callers never see SDK exceptions.
    """

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'openai')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str:
        """Environment variable name holding the API key."""

    @abstractmethod
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
        """Send one chat request asking for a JSON object and return its text.

        Args:
            user_text: The user message (serialized analysis payload).
            model: Override the provider's default model. None uses default.
            system: Instruction text sent as the system message.
            api_key: Credential for the engine.
            timeout: Hard request timeout in seconds.
            temperature: Sampling temperature.

        Returns:
            Raw response text (expected to be a JSON object).
        """
