"""LLM provider adapters.

One concrete implementation of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider -- any OpenAI-compatible chat API (Groq by default)

At startup, main.py creates the provider when AGENT_API_KEY is set and
injects it into FastAPI's app.state for the question-answering endpoint.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
