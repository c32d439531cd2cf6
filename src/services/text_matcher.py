#!/usr/bin/env python3
"""Keyword matching used to decide whether an automation fires."""

import os
import logging
from typing import Callable
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from dotenv import load_dotenv
from rapidfuzz.distance import Indel

from models.automation import split_keywords

load_dotenv()

SIMILARITY_THRESHOLD = float(os.getenv("AUTOMATION_SIMILARITY_THRESHOLD", "0.7"))

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def similarity(text: str, keyword: str) -> float:
    """Normalized similarity in [0, 1] between two already-lowercased strings."""
    return Indel.normalized_similarity(text, keyword)


class TextMatcher:

    def __init__(
        self,
        threshold: float = SIMILARITY_THRESHOLD,
        scorer: Callable[[str, str], float] = similarity
    ):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1")
        self.threshold = threshold
        self.scorer = scorer

    def matches_segment(self, text: str, keyword: str) -> bool:
        """Containment first, then the similarity score over the whole text."""
        text_lower = (text or "").lower()
        keyword_lower = (keyword or "").strip().lower()
        if not text_lower.strip() or not keyword_lower:
            return False

        if keyword_lower in text_lower:
            return True

        score = self.scorer(text_lower, keyword_lower)
        if score >= self.threshold:
            logger.debug(f"Fuzzy match '{keyword_lower}' (score {score:.3f})")
            return True
        return False

    def matches(self, text: str, keyword: str) -> bool:
        """True when any comma-separated alternative of ``keyword`` matches ``text``."""
        return any(self.matches_segment(text, segment) for segment in split_keywords(keyword))


_default_matcher = TextMatcher()


def matches(text: str, keyword: str) -> bool:
    return _default_matcher.matches(text, keyword)
