"""Named extraction strategies that turn raw model text into a usable line.

Models sometimes wrap the answer in reasoning ("Okay, the user wants...") or
leave template placeholders such as ``[Question text]``. Each strategy is a
pure ``text -> Optional[str]``; :func:`extract_text` tries them in order and
falls back to a caller-supplied default.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Strategy = Callable[[str], Optional[str]]

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
_OPEN_THINK = re.compile(r"<think>.*", re.DOTALL | re.IGNORECASE)
_PLACEHOLDER = re.compile(r"\[[^\]\n]*\]|\{[^}\n]*\}|<[^>\n]+>")
_PLACEHOLDER_WORDS = ("question text", "insert ", "placeholder", "your answer here", "lorem ipsum")
_REASONING_PREFIXES = (
    "okay",
    "ok,",
    "alright",
    "hmm",
    "let me",
    "let's see",
    "i need to",
    "i should",
    "i will now",
    "i'll start",
    "first,",
    "the user",
    "so the user",
    "we need to",
    "thinking",
    "here is",
    "here's",
    "sure,",
)
_QUOTED = re.compile(r"\"([^\"\n]+)\"|“([^”\n]+)”")
_SECTION_HEADING = re.compile(
    r"^\s*(?:#{1,6}\s*)?(?:\*\*)?\s*(interview question|question|introduction|intro|summary|feedback|answer)"
    r"(?:\s*\d+)?\s*(?::\s*(?:\*\*)?|\*\*\s*:?|\s*$)\s*(.*)$",
    re.IGNORECASE,
)
_ANY_LABEL = re.compile(r"^\s*(?:#{1,6}\s+\S|\*\*[^*]+\*\*|[A-Z][A-Za-z ]{1,20}:\s)")
_CONTEXT_LABEL = re.compile(r"^\s*(?:\*\*)?(context|note|rationale|why)\b", re.IGNORECASE)
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def strip_reasoning(text: str) -> str:
    """Remove ``<think>`` blocks, including an unterminated trailing one."""

    cleaned = _THINK_BLOCK.sub("", text or "")
    cleaned = _OPEN_THINK.sub("", cleaned)
    return cleaned.strip()


def has_placeholder(text: str) -> bool:
    lowered = text.lower()
    return bool(_PLACEHOLDER.search(text)) or any(word in lowered for word in _PLACEHOLDER_WORDS)


def looks_like_reasoning(text: str) -> bool:
    lowered = text.strip().lower()
    return lowered.startswith(_REASONING_PREFIXES)


def _acceptable(candidate: Optional[str], min_length: int = 10) -> bool:
    if not candidate:
        return False
    text = candidate.strip()
    return len(text) >= min_length and not has_placeholder(text) and not looks_like_reasoning(text)


def _one_line(text: str) -> str:
    return re.sub(r"\s+", " ", text.replace("**", "")).strip()


# ----------------------------------------------------------------------
# Strategies
# ----------------------------------------------------------------------
def quoted_content(text: str) -> Optional[str]:
    """Longest quoted span that reads as a question."""

    spans = [_one_line(a or b) for a, b in _QUOTED.findall(text)]
    spans = [span for span in spans if _acceptable(span, min_length=11)]
    if not spans:
        return None
    questions = [span for span in spans if "?" in span]
    if not questions:
        return None
    return max(questions, key=len)


def markdown_section(text: str) -> Optional[str]:
    """Body of the first ``Question:`` / ``## Summary`` style section."""

    lines = text.splitlines()
    for index, line in enumerate(lines):
        match = _SECTION_HEADING.match(line)
        if not match:
            continue
        body = [match.group(2).strip()] if match.group(2).strip() else []
        for follow in lines[index + 1 :]:
            if not follow.strip():
                if body:
                    break
                continue
            if _ANY_LABEL.match(follow) or _CONTEXT_LABEL.match(follow):
                break
            body.append(follow.strip())
        candidate = "\n".join(body).replace("**", "").strip()
        if _acceptable(candidate):
            return candidate
    return None


def _clean_paragraphs(text: str) -> list[str]:
    paragraphs: list[str] = []
    for block in re.split(r"\n\s*\n", text):
        kept = [
            line.strip()
            for line in block.splitlines()
            if line.strip() and not looks_like_reasoning(line) and not has_placeholder(line)
        ]
        if not kept or _CONTEXT_LABEL.match(kept[0]):
            continue
        paragraphs.append("\n".join(kept))
    return paragraphs


def paragraph_split(text: str) -> Optional[str]:
    """First clean paragraph that asks something, else the first clean one."""

    paragraphs = [p for p in _clean_paragraphs(text) if _acceptable(p)]
    if not paragraphs:
        return None
    for paragraph in paragraphs:
        if "?" in paragraph:
            return _one_line(paragraph)
    return _one_line(paragraphs[0])


def clean_paragraphs(text: str) -> Optional[str]:
    """All clean paragraphs, kept as prose."""

    paragraphs = [p for p in _clean_paragraphs(text) if _acceptable(p)]
    if not paragraphs:
        return None
    return "\n\n".join(paragraphs)


def sentence_split(text: str) -> Optional[str]:
    """Last clean sentence ending in a question mark."""

    sentences = [_one_line(s) for s in _SENTENCE.findall(text.replace("\n", " "))]
    questions = [s for s in sentences if s.endswith("?") and _acceptable(s)]
    return questions[-1] if questions else None


QUESTION_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("quoted_content", quoted_content),
    ("markdown_section", markdown_section),
    ("paragraph_split", paragraph_split),
    ("sentence_split", sentence_split),
)

PROSE_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("markdown_section", markdown_section),
    ("paragraph_split", clean_paragraphs),
)


def extract_text(raw: str, default: str, strategies: Sequence[Tuple[str, Strategy]] = QUESTION_STRATEGIES) -> str:
    """Run ``strategies`` in order over ``raw``; return ``default`` if none yields clean text."""

    text = strip_reasoning(raw)
    if text:
        for name, strategy in strategies:
            candidate = strategy(text)
            if _acceptable(candidate):
                logger.debug("Text extracted strategy=%s", name)
                return candidate.strip()  # type: ignore[union-attr]
    logger.info("Text extraction fell back to default line")
    return default


def extract_question(raw: str, default: str) -> str:
    return extract_text(raw, default, QUESTION_STRATEGIES)


def extract_prose(raw: str, default: str) -> str:
    return extract_text(raw, default, PROSE_STRATEGIES)


__all__ = [
    "PROSE_STRATEGIES",
    "QUESTION_STRATEGIES",
    "clean_paragraphs",
    "extract_prose",
    "extract_question",
    "extract_text",
    "has_placeholder",
    "looks_like_reasoning",
    "markdown_section",
    "paragraph_split",
    "quoted_content",
    "sentence_split",
    "strip_reasoning",
]
