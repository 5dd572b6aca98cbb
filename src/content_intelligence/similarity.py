"""
similarity.py — Pairwise document similarity for clustering and linking.

similarity(a, b) = 0.4 * jaccard(keywords)
                 + 0.3 * jaccard(entity names)
                 + 0.2 * jaccard(tags)
                 + 0.1 * geographic match

Each Jaccard term is computed for all pairs at once from a binary incidence
matrix M (n_docs, n_features):
    intersection = M @ M.T
    union        = |a| + |b| - intersection
Empty unions score 0, never NaN. The diagonal is zeroed: a document is not
its own neighbour.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse as sp

from content_intelligence.config import EngineConfig
from content_intelligence.models import Document, EntityMention, SimilarityEdge
from content_intelligence.tokenizer import extract_keywords, tokenize

logger = logging.getLogger(__name__)

# Place names picked up when a document ships without extracted entities
KNOWN_PLACES = ('thailand', 'colombia', 'vietnam', 'indonesia', 'india', 'nepal')


@dataclass(frozen=True)
class DocumentFeatures:
    keywords: Tuple[str, ...]
    entities: FrozenSet[str]
    tags: FrozenSet[str]
    location: Optional[str]
    country: Optional[str]


def extract_entities(doc: Document) -> Tuple[EntityMention, ...]:
    """Pre-extracted entities, or known place names found in title + content."""
    if doc.entities:
        return doc.entities
    words = set(tokenize(f'{doc.title} {doc.content}'))
    return tuple(
        EntityMention(name=place.capitalize(), type='Place',
                      confidence=0.8, context=place)
        for place in KNOWN_PLACES if place in words
    )


def extract_features(doc: Document, keywords_per_document: int = 20) -> DocumentFeatures:
    def _norm(value: Optional[str]) -> Optional[str]:
        value = (value or '').strip().lower()
        return value or None

    return DocumentFeatures(
        keywords=tuple(extract_keywords(doc.full_text, keywords_per_document)),
        entities=frozenset(e.name.lower() for e in extract_entities(doc)),
        tags=frozenset(t.lower() for t in doc.tags),
        location=_norm(doc.location),
        country=_norm(doc.country_code),
    )


def _jaccard_matrix(sets: Sequence[FrozenSet[str]]) -> np.ndarray:
    n = len(sets)
    vocab = {v: j for j, v in enumerate(sorted(set().union(*sets)))} if sets else {}
    if not vocab:
        return np.zeros((n, n))
    rows, cols = [], []
    for i, values in enumerate(sets):
        for v in values:
            rows.append(i)
            cols.append(vocab[v])
    incidence = sp.csr_matrix(
        (np.ones(len(rows)), (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64))),
        shape=(n, len(vocab)),
    )
    inter = incidence.dot(incidence.T).toarray()
    sizes = np.asarray(incidence.sum(axis=1)).ravel()
    union = sizes[:, None] + sizes[None, :] - inter
    return np.divide(inter, union, out=np.zeros_like(inter), where=union > 0)


def _codes(values: Sequence[Optional[str]]) -> np.ndarray:
    lookup: Dict[str, int] = {}
    return np.array([lookup.setdefault(v, len(lookup)) if v else -1 for v in values])


def _geo_matrix(features: Sequence[DocumentFeatures], country_score: float) -> np.ndarray:
    """1.0 for equal locations; country_score for equal countries when either lacks a location."""
    loc = _codes([f.location for f in features])
    cc = _codes([f.country for f in features])
    both_loc = (loc[:, None] >= 0) & (loc[None, :] >= 0)
    both_cc = (cc[:, None] >= 0) & (cc[None, :] >= 0)
    same_loc = both_loc & (loc[:, None] == loc[None, :])
    same_cc = both_cc & (cc[:, None] == cc[None, :])
    return np.where(both_loc, same_loc * 1.0,
                    np.where(same_cc, country_score, 0.0))


class SimilarityGraph:
    """
    Dense symmetric similarity matrix over a corpus, rows in corpus order.

    Store: O(N^2) floats. Intended for blog-sized corpora (hundreds to a few
    thousand documents); callers bound corpus size externally.
    """

    def __init__(self, doc_ids: Sequence[str], matrix: np.ndarray,
                 features: Dict[str, DocumentFeatures]):
        self.doc_ids: Tuple[str, ...] = tuple(doc_ids)
        self.matrix = matrix
        self.features = features
        self._pos: Dict[str, int] = {d: i for i, d in enumerate(self.doc_ids)}

    @classmethod
    def build(cls, documents: Sequence[Document],
              config: Optional[EngineConfig] = None) -> 'SimilarityGraph':
        config = config or EngineConfig()
        t0 = time.perf_counter()
        doc_ids = [d.id for d in documents]
        features = {d.id: extract_features(d, config.keywords_per_document)
                    for d in documents}
        ordered = [features[d] for d in doc_ids]
        n = len(ordered)
        if n == 0:
            return cls(doc_ids, np.zeros((0, 0)), features)

        matrix = (
            config.keyword_weight * _jaccard_matrix([frozenset(f.keywords) for f in ordered])
            + config.entity_weight * _jaccard_matrix([f.entities for f in ordered])
            + config.tag_weight * _jaccard_matrix([f.tags for f in ordered])
            + config.geo_weight * _geo_matrix(ordered, config.country_match_score)
        )
        np.fill_diagonal(matrix, 0.0)
        np.clip(matrix, 0.0, 1.0, out=matrix)

        logger.debug("Computed %d x %d similarity matrix in %.1f ms",
                     n, n, (time.perf_counter() - t0) * 1000)
        return cls(doc_ids, matrix, features)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._pos

    def score(self, a: str, b: str) -> float:
        if a == b or a not in self._pos or b not in self._pos:
            return 0.0
        return float(self.matrix[self._pos[a], self._pos[b]])

    def neighbors(self, doc_id: str, threshold: float) -> List[str]:
        """Documents with similarity >= threshold, in corpus order."""
        i = self._pos[doc_id]
        return [self.doc_ids[j] for j in np.flatnonzero(self.matrix[i] >= threshold)
                if j != i]

    def edges(self, threshold: float = 0.0) -> Iterator[SimilarityEdge]:
        n = len(self.doc_ids)
        for i in range(n):
            for j in range(i + 1, n):
                s = float(self.matrix[i, j])
                if s > 0 and s >= threshold:
                    yield SimilarityEdge.between(self.doc_ids[i], self.doc_ids[j], s)

    def _submatrix(self, ids: Sequence[str]) -> np.ndarray:
        idx = [self._pos[d] for d in ids]
        return self.matrix[np.ix_(idx, idx)]

    def mean_pairwise(self, ids: Sequence[str]) -> float:
        if len(ids) < 2:
            return 1.0
        sub = self._submatrix(ids)
        upper = sub[np.triu_indices(len(ids), k=1)]
        return float(upper.mean())

    def centroid(self, ids: Sequence[str]) -> Optional[str]:
        """Member with the highest mean similarity to the others (first wins ties)."""
        if not ids:
            return None
        if len(ids) == 1:
            return ids[0]
        sub = self._submatrix(ids)
        means = sub.sum(axis=1) / (len(ids) - 1)
        return ids[int(np.argmax(means))]
