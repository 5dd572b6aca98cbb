"""
recommend.py — Related-document recommendations from five independent signals.

    cluster     same final cluster (or pre-assigned cluster key)   0.8
    entity      shared entity names / target entity count          (0, 1]
    geographic  same location 0.7, same country only 0.5
    related     TF-IDF cosine against the target vector            (0, 1]
    popular     0.5 * views / max views

Signals are merged by keeping each document's best-scoring entry. A signal
that raises is logged and skipped; the rest still contribute.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from content_intelligence.cache import TTLCache
from content_intelligence.config import EngineConfig
from content_intelligence.errors import DocumentNotFoundError
from content_intelligence.index import CorpusSnapshot
from content_intelligence.models import Document, Recommendation
from content_intelligence.search import SearchEngine

logger = logging.getLogger(__name__)

Signal = Callable[[CorpusSnapshot, Document, int], List[Recommendation]]


class RecommendationEngine:

    def __init__(self, search: SearchEngine, config: Optional[EngineConfig] = None,
                 cache: Optional[TTLCache] = None):
        self.search = search
        self.config = config or search.config
        self._cache = cache if cache is not None else TTLCache(
            self.config.cache_ttl, self.config.cache_max_items)

    @property
    def signals(self) -> List[Tuple[str, Signal]]:
        return [
            ('cluster', self._cluster_signal),
            ('entity', self._entity_signal),
            ('geographic', self._geographic_signal),
            ('related', self._content_signal),
            ('popular', self._popularity_signal),
        ]

    def recommend(self, document_id: str, count: int = 5) -> List[Recommendation]:
        snapshot = self.search.snapshot
        if count < 0:
            raise ValueError("count must be non-negative")
        doc = snapshot.by_id.get(document_id)
        if doc is None:
            raise DocumentNotFoundError(document_id)

        key = ('recommend', snapshot.generation, document_id, count)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        candidates: List[Recommendation] = []
        for name, signal in self.signals:
            try:
                candidates.extend(signal(snapshot, doc, count)[:count])
            except Exception:
                logger.exception("Recommendation signal %r failed for %s", name, document_id)

        merged = _merge(candidates, document_id)[:count]
        logger.debug("recommend %s: %d candidates, %d returned",
                     document_id, len(candidates), len(merged))
        self._cache.set(key, tuple(merged))
        return merged

    # -----------------------------------------------------------------------
    # Signals
    # -----------------------------------------------------------------------

    def _cluster_signal(self, snapshot: CorpusSnapshot, doc: Document,
                        count: int) -> List[Recommendation]:
        cluster = snapshot.cluster_of(doc.id)
        if cluster is not None:
            name, members = cluster.name, cluster.members
        elif doc.topic_cluster:
            name = doc.topic_cluster
            members = snapshot.aux.clusters.get(doc.topic_cluster.strip().lower(), [])
        else:
            return []
        return [
            _recommend(snapshot.by_id[other], self.config.cluster_relevance, 'cluster',
                       f'Both posts belong to the {name} topic cluster', ['topic cluster'])
            for other in members if other != doc.id
        ][:count]

    def _entity_signal(self, snapshot: CorpusSnapshot, doc: Document,
                       count: int) -> List[Recommendation]:
        names = {e.name.lower(): e.name for e in doc.entities}
        if not names:
            return []
        shared: Dict[str, List[str]] = {}
        for key, label in names.items():
            for other in snapshot.aux.entities.get(key, ()):
                if other != doc.id:
                    shared.setdefault(other, []).append(label)

        recs = [
            _recommend(snapshot.by_id[other], len(labels) / len(names), 'entity',
                       f"Both posts mention {', '.join(labels)}",
                       [f'entity: {label}' for label in labels])
            for other, labels in shared.items()
        ]
        recs.sort(key=lambda r: r.score, reverse=True)
        return recs[:count]

    def _geographic_signal(self, snapshot: CorpusSnapshot, doc: Document,
                           count: int) -> List[Recommendation]:
        location = (doc.location or '').strip().lower()
        country = (doc.country_code or '').strip().lower()
        if not location and not country:
            return []
        cfg = self.config
        recs = []
        for other in snapshot.documents:
            if other.id == doc.id:
                continue
            if location and (other.location or '').strip().lower() == location:
                recs.append(_recommend(other, cfg.location_relevance, 'geographic',
                                       f'Also about {doc.location}', ['location']))
            elif country and (other.country_code or '').strip().lower() == country:
                recs.append(_recommend(other, cfg.country_relevance, 'geographic',
                                       f'Same country ({doc.country_code.upper()})',
                                       ['country']))
        recs.sort(key=lambda r: r.score, reverse=True)
        return recs[:count]

    def _content_signal(self, snapshot: CorpusSnapshot, doc: Document,
                        count: int) -> List[Recommendation]:
        index = snapshot.index
        if index.row(doc.id) is None or not index.vocabulary:
            return []
        sims = index.cosine_similarities(doc.id)
        order = np.argsort(-sims, kind='stable')
        recs = []
        for i in order:
            other_id = index.doc_ids[i]
            score = float(sims[i])
            if score <= 0:
                break
            if other_id == doc.id:
                continue
            recs.append(_recommend(snapshot.by_id[other_id], min(score, 1.0), 'related',
                                   f'Similar content ({score:.0%} term overlap)',
                                   ['content similarity']))
            if len(recs) >= count:
                break
        return recs

    def _popularity_signal(self, snapshot: CorpusSnapshot, doc: Document,
                           count: int) -> List[Recommendation]:
        others = [d for d in snapshot.documents if d.id != doc.id and d.views > 0]
        if not others:
            return []
        max_views = max(d.views for d in others)
        others.sort(key=lambda d: d.views, reverse=True)
        return [
            _recommend(d, self.config.popularity_ceiling * d.views / max_views, 'popular',
                       f'Popular with readers ({d.views} views)', ['popularity'])
            for d in others[:count]
        ]


def _recommend(doc: Document, score: float, kind: str, reasoning: str,
               factors: List[str]) -> Recommendation:
    return Recommendation(document_id=doc.id, score=score, recommendation_type=kind,
                          reasoning=reasoning, title=doc.title,
                          matching_factors=tuple(factors))


def _merge(candidates: List[Recommendation], exclude: str) -> List[Recommendation]:
    """Best entry per document, highest score first; first-seen wins ties."""
    best: Dict[str, Recommendation] = {}
    for rec in candidates:
        if rec.document_id == exclude:
            continue
        current = best.get(rec.document_id)
        if current is None or rec.score > current.score:
            best[rec.document_id] = rec
    return sorted(best.values(), key=lambda r: r.score, reverse=True)
