"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
The client points at ``AGENT_BASE_URL``, which defaults to Groq's
OpenAI-compatible endpoint; any other compatible provider (OpenAI itself,
TogetherAI, a local Ollama ``/v1``) works by changing the URL and model.
"""

from __future__ import annotations

# The official OpenAI Python SDK (async version).
import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
# AgentError wraps SDK-specific errors so callers never import openai.
from src.utils.errors import AgentError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    This class is an adapter:
        - It implements ILLMProvider (the interface the app expects)
        - It wraps the openai SDK (the third-party library)
        - The rest of the app never imports or calls openai directly
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.agent_api_key
        self._model = settings.agent_model

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(25.0, connect=5.0),
        }
        if settings.agent_base_url:
            client_kwargs["base_url"] = settings.agent_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        # Label used in logs and error messages to identify this provider.
        self._provider_label = (
            "groq" if "groq.com" in (settings.agent_base_url or "") else "openai-compatible"
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 800,
    ) -> str:
        """Generate a text completion via the OpenAI-compatible chat API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise AgentError(
                message=f"{self._provider_label} timed out after 25s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise AgentError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AgentError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "agent_completion",
            model=self._model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return self._provider_label
