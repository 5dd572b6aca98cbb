"""
tokenizer.py — Deterministic text normalization.

Every stage that compares text (TF-IDF index, query terms, cluster keywords)
goes through the same pipeline so identical input always produces the same
token sequence:

    lowercase -> punctuation to whitespace -> split -> drop len <= 2 -> drop stop words

Word characters are ASCII only ([A-Za-z0-9_]): accented letters count as
punctuation, so "Medellín" tokenizes to "medell".
"""

import re
import math
from collections import Counter
from typing import Iterable, List

_PUNCT_RE = re.compile(r'[^\w\s]', re.ASCII)
_TAG_RE = re.compile(r'<[^>]*>')
_SLUG_RE = re.compile(r'[^a-z0-9]+')

MIN_TOKEN_LENGTH = 3
MIN_KEYWORD_LENGTH = 4

STOP_WORDS = frozenset([
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of',
    'with', 'by', 'is', 'are', 'was', 'were', 'be', 'been', 'being', 'have',
    'has', 'had', 'do', 'does', 'did', 'will', 'would', 'could', 'should',
    'may', 'might', 'must', 'can', 'shall', 'this', 'that', 'these', 'those',
    'i', 'you', 'he', 'she', 'it', 'we', 'they', 'me', 'him', 'her', 'us',
    'them', 'my', 'your', 'his', 'its', 'our', 'their',
])


def tokenize(text: str) -> List[str]:
    """Lowercased, punctuation-free tokens longer than two characters."""
    if not text:
        return []
    words = _PUNCT_RE.sub(' ', text.lower()).split()
    return [w for w in words
            if len(w) >= MIN_TOKEN_LENGTH and w not in STOP_WORDS]


def extract_keywords(text: str, limit: int = 20) -> List[str]:
    """
    Most frequent tokens of four or more characters.
    Ties keep first-occurrence order, so the result is stable across runs.
    """
    tokens = [t for t in tokenize(text) if len(t) >= MIN_KEYWORD_LENGTH]
    if not tokens:
        return []
    counts = Counter(tokens)
    first_seen = {}
    for pos, tok in enumerate(tokens):
        first_seen.setdefault(tok, pos)
    ranked = sorted(counts, key=lambda t: (-counts[t], first_seen[t]))
    return ranked[:limit]


def rank_keywords(keyword_lists: Iterable[List[str]], limit: int = 10) -> List[str]:
    """Keywords shared by the most lists; ties broken lexicographically."""
    counts: Counter = Counter()
    for keywords in keyword_lists:
        counts.update(set(keywords))
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [kw for kw, _ in ranked[:limit]]


def slugify(text: str) -> str:
    return _SLUG_RE.sub('-', text.lower()).strip('-')


def estimate_reading_time(content: str, words_per_minute: int = 200) -> int:
    words = _TAG_RE.sub('', content or '').split()
    return math.ceil(len(words) / words_per_minute)
