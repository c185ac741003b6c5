"""RAG-powered Q&A over the indexed job openings.

Accepts a free-text question, retrieves the most relevant job opening
chunks through :class:`~src.services.retrieval_service.RetrievalService`,
and asks the agent model to answer strictly from those chunks.

The data flow is a classic RAG (Retrieval-Augmented Generation) loop:
  1. RETRIEVE -- embed the question and fetch the top-K chunks.
  2. CONTEXT  -- render each hit as a numbered passage (position, location,
                 chunk text) the model can cite.
  3. ANSWER   -- send passages + question to the agent with a system prompt
                 that forbids answering from outside the passages.

When nothing relevant is indexed the agent is not called at all; the
service answers that no matching openings were found.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.rag import QueryMatch
from src.services.retrieval_service import RetrievalService
from src.utils.errors import ValidationError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

NO_MATCH_ANSWER = "No indexed job openings match this question."


class QAResponse:
    """Structured response from the Q&A service.

    Attributes
    ----------
    answer:
        The generated answer text.
    sources:
        The retrieved matches the answer was grounded on, best first.
    """

    def __init__(self, answer: str, sources: list[QueryMatch]) -> None:
        self._answer = answer
        self._sources = list(sources)

    @property
    def answer(self) -> str:
        return self._answer

    @property
    def sources(self) -> list[QueryMatch]:
        return list(self._sources)


class QAService:
    """Answers questions about job openings using retrieval + the agent model.

    Parameters
    ----------
    llm:
        Agent provider used for generating answers.
    retrieval:
        Query pipeline over the job openings index.
    temperature, max_tokens:
        Sampling parameters forwarded to the agent.
    """

    _SYSTEM_PROMPT = (
        "You are a recruitment assistant that answers questions about open job "
        "positions.\n\n"
        "You are given numbered passages retrieved from indexed job opening "
        "documents.\n\n"
        "Guidelines:\n"
        "- Answer ONLY from the passages. Never fabricate or speculate.\n"
        "- If the passages do not contain the answer, say so plainly.\n"
        "- Mention the position and location of every opening you refer to.\n"
        "- Keep the answer concise and actionable."
    )

    # Upper bound on passage text sent to the agent (~4 chars per token).
    _MAX_CONTEXT_CHARS = 12_000

    def __init__(
        self,
        llm: ILLMProvider,
        retrieval: RetrievalService,
        temperature: float = 0.2,
        max_tokens: int = 800,
    ) -> None:
        self._llm = llm
        self._retrieval = retrieval
        self._temperature = temperature
        self._max_tokens = max_tokens

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def answer(self, question: str, top_k: int | None = None) -> QAResponse:
        """Answer *question* from the indexed job openings.

        Raises
        ------
        ValidationError
            If *question* is blank.
        src.utils.errors.AgentError
            If the agent call fails.
        """
        if not question or not question.strip():
            raise ValidationError(
                message="Question must not be empty",
                errors=[{"loc": "question", "msg": "must not be blank"}],
            )
        question = question.strip()

        matches = await self._retrieval.search(question, top_k)
        if not matches:
            logger.info("qa_no_matches", question=question[:80])
            return QAResponse(answer=NO_MATCH_ANSWER, sources=[])

        user_prompt = self._build_user_prompt(question, matches)
        raw = await self._llm.complete(
            system_prompt=self._SYSTEM_PROMPT,
            user_prompt=user_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        logger.info(
            "qa_answered",
            question=question[:80],
            sources=len(matches),
            provider=self._llm.get_provider_name(),
        )
        return QAResponse(answer=raw.strip(), sources=matches)

    # ------------------------------------------------------------------
    # Private helpers -- prompt assembly
    # ------------------------------------------------------------------

    def _build_user_prompt(self, question: str, matches: list[QueryMatch]) -> str:
        passages = "\n\n".join(
            self._format_passage(number, match.metadata)
            for number, match in enumerate(matches, start=1)
        )
        if len(passages) > self._MAX_CONTEXT_CHARS:
            logger.info(
                "qa_context_truncated",
                original_chars=len(passages),
                max_chars=self._MAX_CONTEXT_CHARS,
            )
            passages = passages[: self._MAX_CONTEXT_CHARS]

        return (
            "## Retrieved Job Opening Passages\n"
            f"{passages}\n\n"
            f"## Question\n{question}"
        )

    @staticmethod
    def _format_passage(number: int, metadata: dict[str, Any]) -> str:
        position = metadata.get("position", "unknown position")
        location = metadata.get("location", "unknown location")
        text = metadata.get("text", "")
        return f"[{number}] {position} ({location})\n{text}"
