"""
ClauseLens Clause Segmentation Module
=====================================
Splits raw document text into a small, bounded list of clause strings.

Strategies are tried as a priority cascade, not a search for the best split:
1. Structural section markers (first marker family that qualifies wins)
2. Sentence-based splitting
3. Paragraph splitting
4. Fixed-width chunking
Every candidate is then whitespace-normalized and length-filtered.
"""

import logging
import re

logger = logging.getLogger(__name__)


# Section marker families in priority order
SECTION_MARKERS = [
    re.compile(r"\n\s*\d+\.\s+"),                   # "1. ", "2. "
    re.compile(r"\n\s*[A-Z]\.\s+"),                 # "A. ", "B. "
    re.compile(r"\n\s*\([a-z]\)\s+"),               # "(a) ", "(b) "
    re.compile(r"\n\s*Article\s+\d+", re.IGNORECASE),
    re.compile(r"\n\s*Section\s+\d+", re.IGNORECASE),
    re.compile(r"\n\s*Clause\s+\d+", re.IGNORECASE),
]

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
PARAGRAPH_BOUNDARY = re.compile(r"\n\s*\n")
WHITESPACE = re.compile(r"\s+")


class ClauseSegmenter:
    """
    Rule-based clause segmentation.

    The output always holds between 1 and MAX_CLAUSES strings. When no
    strategy produces a clause of acceptable length, the first
    FALLBACK_LENGTH characters of the raw text are returned as the only clause.
    """

    MAX_CLAUSES = 10
    MIN_CLAUSE_LENGTH = 40
    MAX_CLAUSE_LENGTH = 1000
    FALLBACK_LENGTH = 500
    CHUNK_SIZE = 400

    def segment(self, text: str) -> list[str]:
        """
        Split text into clause strings.

        Args:
            text: Raw document text

        Returns:
            Ordered list of 1-10 clause strings
        """
        text = text or ""
        try:
            logger.info(f"Starting clause splitting, text length: {len(text)}")

            clauses = self._split_by_markers(text)

            if len(clauses) < 5:
                logger.debug("Using sentence-based splitting")
                clauses = self._split_by_sentences(text)

            if len(clauses) < 5:
                logger.debug("Using paragraph-based splitting")
                paragraphs = self._split_by_paragraphs(text)
                if len(paragraphs) > len(clauses):
                    clauses = paragraphs[:12]

            if len(clauses) < 3:
                logger.debug("Using character-based chunking as last resort")
                clauses = self._split_by_chunks(text)

            clauses = self._normalize(clauses)
            logger.info(f"Final clause count: {len(clauses)}")

            return clauses if clauses else [text[:self.FALLBACK_LENGTH]]

        except Exception as e:
            logger.error(f"Error splitting clauses: {e}")
            return [text[:self.FALLBACK_LENGTH]]

    def _split_by_markers(self, text: str) -> list[str]:
        """Split on the first marker family yielding more than three parts."""
        for marker in SECTION_MARKERS:
            sections = marker.split(text)
            if len(sections) > 3:
                logger.debug(f"Found {len(sections)} sections using {marker.pattern!r}")
                return [s.strip() for s in sections if len(s.strip()) > 50][:15]
        return []

    def _split_by_sentences(self, text: str) -> list[str]:
        """Collect long sentences, or sentence pairs when too few are long."""
        flattened = re.sub(r"\n+", " ", text)
        sentences = [
            s for s in SENTENCE_BOUNDARY.split(flattened)
            if len(s.strip()) > 30
        ]
        logger.debug(f"Found {len(sentences)} sentences")

        clauses = []
        for sentence in sentences:
            if len(clauses) >= 15:
                break
            sentence = sentence.strip()
            if len(sentence) > 80:
                clauses.append(sentence)

        if len(clauses) < 8:
            clauses = []
            for i in range(0, len(sentences), 2):
                if len(clauses) >= 12:
                    break
                group = " ".join(sentences[i:i + 2]).strip()
                if len(group) > 50:
                    clauses.append(group)

        return clauses

    def _split_by_paragraphs(self, text: str) -> list[str]:
        return [
            p.strip() for p in PARAGRAPH_BOUNDARY.split(text)
            if len(p.strip()) > 50
        ]

    def _split_by_chunks(self, text: str) -> list[str]:
        chunks = []
        for i in range(0, len(text), self.CHUNK_SIZE):
            if len(chunks) >= 10:
                break
            chunk = text[i:i + self.CHUNK_SIZE].strip()
            if len(chunk) > 100:
                chunks.append(chunk)
        return chunks

    def _normalize(self, clauses: list[str]) -> list[str]:
        """Collapse whitespace, keep clauses of acceptable length, cap the count."""
        cleaned = [WHITESPACE.sub(" ", c).strip() for c in clauses]
        return [
            c for c in cleaned
            if self.MIN_CLAUSE_LENGTH <= len(c) <= self.MAX_CLAUSE_LENGTH
        ][:self.MAX_CLAUSES]


def split_into_clauses(text: str) -> list[str]:
    """Module-level shortcut for ClauseSegmenter().segment()."""
    return ClauseSegmenter().segment(text)
