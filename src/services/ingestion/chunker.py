"""Job opening chunking with overlapping windows.

Splits a job opening into :class:`~src.models.rag.DocumentChunk` objects
bounded by ``ChunkingConfig.max_size`` characters.

The document is first broken into *pieces* (whole fields, list items,
paragraphs, lines or words depending on the strategy), then pieces are
greedily packed into chunks:

1. **Bounded** -- no chunk exceeds ``max_size``.  A piece that is larger
   than ``max_size`` on its own is split further (recursive strategy) or cut
   at ``max_size`` (character strategy) before packing.

2. **Overlapping windows** -- when a chunk is flushed, its trailing pieces
   (up to ``overlap`` characters) seed the next chunk so that a field or
   sentence spanning a boundary is fully captured in at least one chunk.
   Leading overlap pieces are dropped if the next piece would not fit.

Chunking is lazy: :meth:`DocumentChunker.chunk` validates its input and
returns a :class:`ChunkSequence` that re-runs the split every time it is
iterated.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

import structlog

from src.models.job_opening import JobOpening, parse_job_opening
from src.models.rag import ChunkingConfig, DocumentChunk

logger = structlog.get_logger(logger_name=__name__)

# Separators tried in order by the recursive strategy; "" means per character.
RECURSIVE_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", " ", "")
PARAGRAPH_SEPARATOR = "\n\n"
# Pieces from the json strategy are one line each.
FIELD_SEPARATOR = "\n"


class ChunkSequence:
    """Restartable, lazily evaluated sequence of chunks for one document.

    Each call to :meth:`__iter__` starts a fresh generator, so the sequence
    can be consumed more than once and always yields the same chunks.
    """

    def __init__(
        self,
        source_hash: str,
        factory: Callable[[], Iterator[str]],
    ) -> None:
        self._source_hash = source_hash
        self._factory = factory

    @property
    def source_hash(self) -> str:
        return self._source_hash

    def __iter__(self) -> Iterator[DocumentChunk]:
        for index, text in enumerate(self._factory()):
            yield DocumentChunk(
                chunk_id=f"{self._source_hash}-{index}",
                index=index,
                text=text,
                source_hash=self._source_hash,
            )


class DocumentChunker:
    """Splits job openings into bounded, overlapping chunks.

    Parameters
    ----------
    config:
        Strategy and size parameters; defaults to the ``json`` strategy with
        500-character chunks and 50 characters of overlap.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self._config = config or ChunkingConfig()

    @property
    def config(self) -> ChunkingConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, document: JobOpening | Mapping[str, Any]) -> ChunkSequence:
        """Return the chunks of *document* as a lazy :class:`ChunkSequence`.

        Raises
        ------
        src.utils.errors.ValidationError
            Immediately, if *document* does not satisfy the JobOpening schema.
        """
        job = parse_job_opening(document)
        source_hash = job.content_hash()
        logger.debug(
            "chunking_requested",
            strategy=self._config.strategy,
            max_size=self._config.max_size,
            source_hash=source_hash,
        )
        return ChunkSequence(source_hash, lambda: self._iter_texts(job))

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _iter_texts(self, job: JobOpening) -> Iterator[str]:
        strategy = self._config.strategy
        if strategy == "json":
            texts = self._merge(self._json_pieces(job), FIELD_SEPARATOR)
        elif strategy == "recursive":
            texts = self._split_recursive(render_text(job), RECURSIVE_SEPARATORS)
        else:
            texts = self._merge(
                self._character_pieces(render_text(job)),
                self._joiner(PARAGRAPH_SEPARATOR),
            )
        for text in texts:
            if self._config.strip_whitespace:
                text = text.strip()
            if text:
                yield text

    def _json_pieces(self, job: JobOpening) -> Iterator[str]:
        """One ``key: value`` piece per field (per list item with convert_lists)."""
        for key, value in job.to_wire().items():
            if isinstance(value, list):
                if self._config.convert_lists:
                    lines = [f"{key}: {item}" for item in value]
                else:
                    lines = [f"{key}: {json.dumps(value, ensure_ascii=False)}"]
            else:
                lines = [f"{key}: {value}"]
            for line in lines:
                if len(line) <= self._config.max_size:
                    yield line
                else:
                    yield from self._split_recursive(line, RECURSIVE_SEPARATORS[1:])

    def _character_pieces(self, text: str) -> Iterator[str]:
        size = self._config.max_size
        for piece in self._split_on(text, PARAGRAPH_SEPARATOR):
            if len(piece) <= size:
                yield piece
            else:
                for start in range(0, len(piece), size):
                    yield piece[start : start + size]

    def _split_recursive(self, text: str, separators: Iterable[str]) -> Iterator[str]:
        """Split on the first separator present; recurse into oversized splits."""
        separators = list(separators)
        separator = separators[-1] if separators else ""
        remaining: list[str] = []
        for index, candidate in enumerate(separators):
            if candidate == "" or candidate in text:
                separator = candidate
                remaining = separators[index + 1 :]
                break

        fitting: list[str] = []
        for piece in self._split_on(text, separator):
            if len(piece) <= self._config.max_size:
                fitting.append(piece)
                continue
            if fitting:
                yield from self._merge(fitting, self._joiner(separator))
                fitting = []
            if remaining:
                yield from self._split_recursive(piece, remaining)
            else:
                size = self._config.max_size
                for start in range(0, len(piece), size):
                    yield piece[start : start + size]
        if fitting:
            yield from self._merge(fitting, self._joiner(separator))

    # ------------------------------------------------------------------
    # Chunk accumulation
    # ------------------------------------------------------------------

    def _merge(self, pieces: Iterable[str], joiner: str) -> Iterator[str]:
        """Greedily pack *pieces* into chunks respecting size and overlap.

        Every piece must already fit in ``max_size`` on its own.
        """
        current: list[str] = []
        for piece in pieces:
            if current and self._joined_len(current + [piece], joiner) > self._config.max_size:
                yield joiner.join(current)
                current = self._build_overlap(current, piece, joiner)
            current.append(piece)
        if current:
            yield joiner.join(current)

    def _build_overlap(self, parts: list[str], next_piece: str, joiner: str) -> list[str]:
        """Return tail pieces of *parts* totalling <= overlap that leave room for *next_piece*."""
        overlap_parts: list[str] = []
        for part in reversed(parts):
            if self._joined_len([part, *overlap_parts], joiner) > self._config.overlap:
                break
            overlap_parts.insert(0, part)
        while (
            overlap_parts
            and self._joined_len(overlap_parts + [next_piece], joiner) > self._config.max_size
        ):
            overlap_parts.pop(0)
        return overlap_parts

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _split_on(self, text: str, separator: str) -> list[str]:
        if separator == "":
            return list(text)
        if not self._config.keep_separator:
            return [part for part in text.split(separator) if part]
        # Attach each separator to the piece that follows it.
        parts = re.split(f"({re.escape(separator)})", text)
        pieces = [parts[0]] + [
            parts[i] + parts[i + 1] for i in range(1, len(parts) - 1, 2)
        ]
        return [piece for piece in pieces if piece]

    def _joiner(self, separator: str) -> str:
        return "" if self._config.keep_separator else separator

    @staticmethod
    def _joined_len(parts: list[str], joiner: str) -> int:
        return sum(len(p) for p in parts) + len(joiner) * (len(parts) - 1)


def render_text(job: JobOpening) -> str:
    """Render *job* as plain text: one paragraph per field, lists as bullets."""
    paragraphs: list[str] = []
    for key, value in job.to_wire().items():
        if isinstance(value, list):
            bullets = "\n".join(f"- {item}" for item in value)
            paragraphs.append(f"{key}:\n{bullets}" if bullets else f"{key}:")
        else:
            paragraphs.append(f"{key}: {value}")
    return PARAGRAPH_SEPARATOR.join(paragraphs)
