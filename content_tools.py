"""
Text helpers for authored content: HTML stripping, keyword extraction,
read-time estimation, excerpts and @mentions. All functions are pure.
"""

import math
import re
from collections import Counter
from typing import List

from bs4 import BeautifulSoup

WORDS_PER_MINUTE = 200
DEFAULT_MAX_KEYWORDS = 15
DEFAULT_EXCERPT_LENGTH = 200

_WHITESPACE_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"\b\w+\b")
_ALPHA_RE = re.compile(r"[a-z]+")
_MENTION_RE = re.compile(r"@(\w+)")

STOP_WORDS = frozenset([
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should", "may", "might", "can", "this", "that", "these", "those",
    "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us", "them",
    "about", "after", "all", "also", "any", "as", "back", "come",
    "day", "down", "each", "even", "every", "first", "found", "good",
    "great", "here", "his", "how", "if", "into",
    "its", "just", "know", "like", "look", "made", "make", "many", "more", "most",
    "much", "my", "new", "no", "not", "now", "one", "only", "other", "our",
    "out", "over", "say", "see", "so", "some", "than", "their",
    "then", "there", "through", "two", "up",
    "use", "very", "way", "well", "what", "when", "where", "which", "who",
    "your",
])


def strip_html(content: str) -> str:
    """Visible text of an HTML fragment with entities decoded and whitespace collapsed"""
    if not content:
        return ""
    soup = BeautifulSoup(content, "html5lib")
    for tag in soup(["script", "style"]):
        tag.decompose()
    text = soup.get_text(separator=" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def count_words(content: str) -> int:
    return len(strip_html(content).split())


def count_characters(content: str) -> int:
    return len(strip_html(content))


def calculate_read_time_minutes(content: str) -> int:
    """Minutes at 200 words per minute, rounded up, never below one"""
    return max(1, math.ceil(count_words(content) / WORDS_PER_MINUTE))


def calculate_read_time(content: str) -> str:
    return f"{calculate_read_time_minutes(content)} min read"


def extract_keywords(content: str, max_keywords: int = DEFAULT_MAX_KEYWORDS) -> List[str]:
    """
    Most frequent meaningful words of an HTML body.

    Tokens shorter than four characters, non-alphabetic tokens and stop words
    are dropped. Words with equal counts keep the order in which they first
    appear in the text.
    """
    text = strip_html(content).lower()
    words = [
        w for w in _WORD_RE.findall(text)
        if len(w) > 3 and w not in STOP_WORDS and _ALPHA_RE.fullmatch(w)
    ]
    return [word for word, _ in Counter(words).most_common(max_keywords)]


def extract_excerpt(content: str, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    text = strip_html(content)
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


def extract_mentions(text: str) -> List[str]:
    return _MENTION_RE.findall(text or "")
