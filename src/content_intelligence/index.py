"""
index.py — TF-IDF index and auxiliary inverted indexes.

The corpus is held as two sparse matrices of shape (n_docs, n_terms):

    weights  raw tf * idf per (document, term)
    vectors  the same rows L2-normalized (zero rows stay zero)

Columns follow the lexicographically sorted vocabulary and rows follow the
documents sorted by id, so rebuilding from the same corpus gives identical
structures regardless of input order.

Query scoring is a sparse matrix-vector product:
    q_vec (n_terms,) holds one count per query-term occurrence
    weights @ q_vec -> (n_docs,) sum of tf*idf over the query terms present

A build never mutates a published snapshot. `build_snapshot` assembles every
structure first and returns a new frozen `CorpusSnapshot` for the caller to
publish in one assignment.
"""

import logging
import math
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse as sp

from content_intelligence.models import Document, TopicCluster
from content_intelligence.similarity import SimilarityGraph
from content_intelligence.tokenizer import tokenize

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# TF-IDF
# ---------------------------------------------------------------------------

class TfidfIndex:
    """
    Term frequencies, inverse document frequencies and normalized vectors.

    term_frequencies[doc_id][term] = count(term) / n_tokens(doc)
    idf[term]                      = ln(N / df(term))   (>= 0, 0 iff df == N)
    """

    def __init__(
        self,
        doc_ids: Sequence[str],
        term_frequencies: Dict[str, Dict[str, float]],
        idf: Dict[str, float],
        vocabulary: List[str],
        weights,
        vectors,
    ):
        self.doc_ids: Tuple[str, ...] = tuple(doc_ids)
        self.term_frequencies = term_frequencies
        self.idf = idf
        self.vocabulary = vocabulary
        self._term_to_col: Dict[str, int] = {t: j for j, t in enumerate(vocabulary)}
        self._id_to_row: Dict[str, int] = {d: i for i, d in enumerate(self.doc_ids)}
        self._weights = weights
        self._vectors = vectors

    @classmethod
    def build(cls, documents: Sequence[Document]) -> 'TfidfIndex':
        t0 = time.perf_counter()
        doc_ids = [d.id for d in documents]

        # Per-document term frequencies, normalized by token count
        term_frequencies: Dict[str, Dict[str, float]] = {}
        for doc in documents:
            tokens = tokenize(doc.full_text)
            counts = Counter(tokens)
            n_tokens = len(tokens)
            term_frequencies[doc.id] = {
                t: c / n_tokens for t, c in counts.items()
            } if n_tokens else {}

        # Document frequency is a sum over per-document term sets
        df: Counter = Counter()
        for tf in term_frequencies.values():
            df.update(tf.keys())

        n_docs = len(documents)
        idf = {t: math.log(n_docs / c) for t, c in df.items()}
        vocabulary = sorted(df)
        col = {t: j for j, t in enumerate(vocabulary)}

        rows, cols, vals = [], [], []
        for i, doc_id in enumerate(doc_ids):
            for term, tf in term_frequencies[doc_id].items():
                w = tf * idf[term]
                if w == 0.0:
                    continue
                rows.append(i)
                cols.append(col[term])
                vals.append(w)

        shape = (n_docs, len(vocabulary))
        weights = sp.csr_matrix(
            (np.array(vals, dtype=np.float64),
             (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64))),
            shape=shape,
        )
        vectors = _l2_normalize_rows(weights) if weights.nnz else weights.copy()

        logger.info(
            "Built TF-IDF index: %d documents, %d terms, %d non-zeros in %.1f ms",
            n_docs, len(vocabulary), weights.nnz,
            (time.perf_counter() - t0) * 1000,
        )
        return cls(doc_ids, term_frequencies, idf, vocabulary, weights, vectors)

    # -----------------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.doc_ids)

    def row(self, doc_id: str) -> Optional[int]:
        return self._id_to_row.get(doc_id)

    def vector(self, doc_id: str) -> np.ndarray:
        """Dense normalized vector over the full vocabulary."""
        i = self._id_to_row[doc_id]
        return self._vectors[i:i + 1].toarray().ravel()

    def magnitudes(self) -> np.ndarray:
        return _row_norms(self._vectors)

    # -----------------------------------------------------------------------
    # Scoring
    # -----------------------------------------------------------------------

    def score_terms(self, terms: Sequence[str]) -> Dict[str, Tuple[float, List[str]]]:
        """
        Sum tf*idf over query terms for every document.
        Returns {doc_id: (score, matched_terms)} for documents scoring > 0.
        """
        if not terms or not self.vocabulary:
            return {}
        q_vec = np.zeros(len(self.vocabulary), dtype=np.float64)
        for t in terms:
            j = self._term_to_col.get(t)
            if j is not None:
                q_vec[j] += 1.0
        if not q_vec.any():
            return {}

        scores = self._weights.dot(q_vec)
        results: Dict[str, Tuple[float, List[str]]] = {}
        for i in np.flatnonzero(scores > 0):
            doc_id = self.doc_ids[i]
            tf = self.term_frequencies[doc_id]
            matched = list(dict.fromkeys(t for t in terms if t in tf))
            results[doc_id] = (float(scores[i]), matched)
        return results

    def cosine_similarities(self, doc_id: str) -> np.ndarray:
        """
        Dot products of the normalized vectors against one document.
        Rows are unit length (or zero), so this is cosine similarity.
        """
        i = self._id_to_row[doc_id]
        target = self._vectors[i:i + 1]
        return np.asarray(self._vectors.dot(target.T).todense()).ravel()


def _row_norms(mat) -> np.ndarray:
    return np.sqrt(np.asarray(mat.multiply(mat).sum(axis=1)).ravel())


def _l2_normalize_rows(mat):
    norms = _row_norms(mat)
    inv = np.zeros_like(norms)
    nonzero = norms > 0
    inv[nonzero] = 1.0 / norms[nonzero]
    normalized = sp.diags(inv).dot(mat).tocsr()
    normalized.eliminate_zeros()
    return normalized


# ---------------------------------------------------------------------------
# Auxiliary inverted indexes
# ---------------------------------------------------------------------------

def _append(index: Dict[str, List[str]], key: Optional[str], doc_id: str):
    if not key:
        return
    key = key.strip().lower()
    if not key:
        return
    ids = index.setdefault(key, [])
    if doc_id not in ids:
        ids.append(doc_id)


@dataclass(frozen=True)
class AuxiliaryIndexes:
    """Lowercased key -> document ids, in corpus order."""
    entities: Mapping[str, List[str]] = field(default_factory=dict)
    locations: Mapping[str, List[str]] = field(default_factory=dict)
    clusters: Mapping[str, List[str]] = field(default_factory=dict)

    @classmethod
    def build(cls, documents: Iterable[Document],
              clusters: Sequence[TopicCluster] = ()) -> 'AuxiliaryIndexes':
        entities: Dict[str, List[str]] = {}
        locations: Dict[str, List[str]] = {}
        cluster_keys: Dict[str, List[str]] = {}
        for doc in documents:
            for entity in doc.entities:
                _append(entities, entity.name, doc.id)
            _append(locations, doc.location, doc.id)
            _append(locations, doc.country_code, doc.id)
            _append(cluster_keys, doc.topic_cluster, doc.id)
        for cluster in clusters:
            for doc_id in cluster.members:
                _append(cluster_keys, cluster.name, doc_id)
        return cls(entities=entities, locations=locations, clusters=cluster_keys)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CorpusSnapshot:
    """
    Everything one build produced. Readers take a single reference to a
    snapshot, so the index, clusters and similarity graph they see always
    come from the same build.
    """
    documents: Tuple[Document, ...]
    by_id: Mapping[str, Document]
    index: TfidfIndex
    aux: AuxiliaryIndexes
    clusters: Tuple[TopicCluster, ...] = ()
    membership: Mapping[str, str] = field(default_factory=dict)
    cluster_by_id: Mapping[str, TopicCluster] = field(default_factory=dict)
    graph: Optional[SimilarityGraph] = None
    generation: int = 0
    built_at: float = field(default_factory=time.time)

    def cluster_of(self, doc_id: str) -> Optional[TopicCluster]:
        cluster_id = self.membership.get(doc_id)
        if cluster_id is None:
            return None
        return self.cluster_by_id[cluster_id]


def order_documents(documents: Iterable[Document]) -> Tuple[Document, ...]:
    """Sort by id and reject duplicates."""
    ordered = sorted(documents, key=lambda d: d.id)
    for prev, cur in zip(ordered, ordered[1:]):
        if prev.id == cur.id:
            raise ValueError(f"Duplicate document id: {cur.id}")
    return tuple(ordered)


def build_snapshot(documents: Iterable[Document],
                   clusters: Sequence[TopicCluster] = (),
                   generation: int = 0,
                   graph: Optional[SimilarityGraph] = None) -> CorpusSnapshot:
    ordered = order_documents(documents)
    cluster_by_id: Dict[str, TopicCluster] = {}
    for cluster in clusters:
        if cluster.id in cluster_by_id:
            raise ValueError(f"Duplicate cluster id: {cluster.id}")
        cluster_by_id[cluster.id] = cluster
    index = TfidfIndex.build(ordered)
    aux = AuxiliaryIndexes.build(ordered, clusters)
    membership = {}
    for cluster in clusters:
        for doc_id in cluster.members:
            membership.setdefault(doc_id, cluster.id)
    return CorpusSnapshot(
        documents=ordered,
        by_id={d.id: d for d in ordered},
        index=index,
        aux=aux,
        clusters=tuple(clusters),
        membership=membership,
        cluster_by_id=cluster_by_id,
        graph=graph,
        generation=generation,
    )
