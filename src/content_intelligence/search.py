"""
search.py — Multi-stage retrieval over a published corpus snapshot.

Stages run independently and are fused per document:

    exact     substring of the raw query in title/excerpt/content   score 1.0
    tfidf     sum of tf*idf over query terms present                score >= 0
    semantic  embedding retrieval, not wired to a model             always empty
    entity    query substring of an indexed entity name             score 0.8
    cluster   query substring of an indexed cluster key             score 0.6

    combined(doc) = sum(stage_score * stage_weight)

Filters run on the fused list, then sorting, then offset/limit.

Publishing: `initialize()` builds a complete snapshot and swaps it in with a
single assignment. `search()` reads `self._snapshot` once, so a concurrent
rebuild is never observed half-done.
"""

import logging
import threading
import time
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from content_intelligence.cache import TTLCache
from content_intelligence.config import EngineConfig
from content_intelligence.errors import EngineNotInitializedError
from content_intelligence.index import CorpusSnapshot, build_snapshot
from content_intelligence.models import (
    Document, EntityMention, SearchFilters, SearchResult, TopicCluster,
)
from content_intelligence.similarity import SimilarityGraph
from content_intelligence.tokenizer import estimate_reading_time, tokenize

logger = logging.getLogger(__name__)

SORT_ORDERS = ('relevance', 'date', 'popularity', 'readingTime')
_SORT_ALIASES = {'reading_time': 'readingTime'}

# (doc_id, score, matched_terms)
StageHits = List[Tuple[str, float, List[str]]]


class SearchEngine:

    def __init__(self, config: Optional[EngineConfig] = None,
                 cache: Optional[TTLCache] = None):
        self.config = config or EngineConfig()
        self._cache = cache if cache is not None else TTLCache(
            self.config.cache_ttl, self.config.cache_max_items)
        self._snapshot: Optional[CorpusSnapshot] = None
        self._build_lock = threading.Lock()
        self._generation = 0

    # -----------------------------------------------------------------------
    # Building
    # -----------------------------------------------------------------------

    def initialize(self, documents: Sequence[Document],
                   clusters: Sequence[TopicCluster] = (),
                   graph: Optional[SimilarityGraph] = None) -> CorpusSnapshot:
        """Build a fresh snapshot and publish it. Previous readers keep their copy."""
        with self._build_lock:
            generation = self._generation + 1
            t0 = time.perf_counter()
            snapshot = build_snapshot(documents, clusters, generation=generation,
                                      graph=graph)
            self._snapshot = snapshot
            self._generation = generation
        logger.info("Published corpus snapshot #%d (%d documents, %d clusters) in %.1f ms",
                    generation, len(snapshot.documents), len(snapshot.clusters),
                    (time.perf_counter() - t0) * 1000)
        return snapshot

    @property
    def initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> CorpusSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise EngineNotInitializedError("Search engine not initialized")
        return snapshot

    # -----------------------------------------------------------------------
    # Query
    # -----------------------------------------------------------------------

    def search(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
        sort_by: str = 'relevance',
        limit: Optional[int] = None,
        offset: int = 0,
        include_entities: bool = False,
    ) -> List[SearchResult]:
        snapshot = self.snapshot
        sort_by = _SORT_ALIASES.get(sort_by, sort_by)
        if sort_by not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {sort_by!r}")
        limit = self.config.default_limit if limit is None else limit
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must be non-negative")

        query = query or ''
        if not query.strip():
            return []

        key = (snapshot.generation, query, repr(filters), sort_by, limit, offset,
               include_entities)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        t0 = time.perf_counter()
        stages = {
            'exact': self._exact_stage(snapshot, query),
            'tfidf': self._tfidf_stage(snapshot, query),
            'semantic': self._semantic_stage(snapshot, query),
            'entity': self._entity_stage(snapshot, query),
            'cluster': self._cluster_stage(snapshot, query),
        }
        results = self._fuse(snapshot, stages, include_entities)
        results = self._apply_filters(snapshot, results, filters)
        results = self._apply_sorting(snapshot, results, sort_by)
        page = results[offset:offset + limit]

        logger.debug("search %r: %d matches, %d returned in %.2f ms",
                     query, len(results), len(page), (time.perf_counter() - t0) * 1000)
        self._cache.set(key, tuple(page))
        return page

    # -----------------------------------------------------------------------
    # Stages
    # -----------------------------------------------------------------------

    def _exact_stage(self, snapshot: CorpusSnapshot, query: str) -> StageHits:
        needle = query.lower()
        return [
            (doc.id, self.config.exact_score, [query])
            for doc in snapshot.documents
            if needle in doc.full_text.lower()
        ]

    def _tfidf_stage(self, snapshot: CorpusSnapshot, query: str) -> StageHits:
        scored = snapshot.index.score_terms(tokenize(query))
        hits = [(doc_id, score, terms) for doc_id, (score, terms) in scored.items()]
        hits.sort(key=lambda h: h[1], reverse=True)
        return hits

    def _semantic_stage(self, snapshot: CorpusSnapshot, query: str) -> StageHits:
        # Embedding retrieval needs an external model; this stage stays empty.
        return []

    def _key_stage(self, keyed: Dict[str, List[str]], query: str, score: float) -> StageHits:
        needle = query.lower()
        return [
            (doc_id, score, [key])
            for key in sorted(keyed)
            if needle in key
            for doc_id in keyed[key]
        ]

    def _entity_stage(self, snapshot: CorpusSnapshot, query: str) -> StageHits:
        return self._key_stage(snapshot.aux.entities, query, self.config.entity_score)

    def _cluster_stage(self, snapshot: CorpusSnapshot, query: str) -> StageHits:
        return self._key_stage(snapshot.aux.clusters, query, self.config.cluster_score)

    # -----------------------------------------------------------------------
    # Fusion
    # -----------------------------------------------------------------------

    def _fuse(self, snapshot: CorpusSnapshot, stages: Dict[str, StageHits],
              include_entities: bool) -> List[SearchResult]:
        weights = self.config.stage_weights
        combined: Dict[str, float] = defaultdict(float)
        matches: Dict[str, List[str]] = defaultdict(list)
        for stage, hits in stages.items():
            weight = weights.get(stage, 0.0)
            for doc_id, score, terms in hits:
                combined[doc_id] += score * weight
                matches[doc_id].extend(terms)

        results = []
        for doc_id, score in combined.items():
            doc = snapshot.by_id[doc_id]
            terms = list(dict.fromkeys(matches[doc_id]))
            results.append(SearchResult(
                document_id=doc_id,
                score=score,
                snippet=self._snippet(doc, terms),
                highlighted_terms=tuple(terms),
                highlights=tuple([t for t in terms if len(t) > 2][:self.config.max_highlights]),
                entity_matches=_entity_matches(doc, terms) if include_entities else (),
            ))
        # Stable on corpus order for equal scores
        order = {d.id: i for i, d in enumerate(snapshot.documents)}
        results.sort(key=lambda r: (-r.score, order[r.document_id]))
        return results

    def _snippet(self, doc: Document, terms: Sequence[str]) -> str:
        cfg = self.config
        text = doc.excerpt or doc.content[:cfg.snippet_source_chars]
        start = 0
        if terms:
            lowered = text.lower()
            for term in terms:
                pos = lowered.find(term.lower())
                if pos != -1:
                    start = max(0, pos - cfg.snippet_lead)
                    break
        return text[start:start + cfg.snippet_length] + '...'

    # -----------------------------------------------------------------------
    # Filters and sorting
    # -----------------------------------------------------------------------

    def _reading_time(self, doc: Document) -> int:
        if doc.reading_time:
            return doc.reading_time
        return estimate_reading_time(doc.content, self.config.words_per_minute)

    def _apply_filters(self, snapshot: CorpusSnapshot, results: List[SearchResult],
                       filters: Optional[SearchFilters]) -> List[SearchResult]:
        if filters is None:
            return results

        def keep(doc: Document) -> bool:
            if filters.language and doc.language != filters.language:
                return False
            if filters.categories and doc.category not in filters.categories:
                return False
            if filters.tags and not set(doc.tags) & set(filters.tags):
                return False
            if filters.locations:
                location = (doc.location or '').lower()
                if not location or not any(loc.lower() in location for loc in filters.locations):
                    return False
            if filters.start_date or filters.end_date:
                if doc.published is None:
                    return False
                if filters.start_date and doc.published < filters.start_date:
                    return False
                if filters.end_date and doc.published > filters.end_date:
                    return False
            if filters.min_reading_time is not None or filters.max_reading_time is not None:
                minutes = self._reading_time(doc)
                if filters.min_reading_time is not None and minutes < filters.min_reading_time:
                    return False
                if filters.max_reading_time is not None and minutes > filters.max_reading_time:
                    return False
            return True

        return [r for r in results if keep(snapshot.by_id[r.document_id])]

    def _apply_sorting(self, snapshot: CorpusSnapshot, results: List[SearchResult],
                       sort_by: str) -> List[SearchResult]:
        docs = snapshot.by_id
        if sort_by == 'date':
            dated = [r for r in results if docs[r.document_id].published is not None]
            undated = [r for r in results if docs[r.document_id].published is None]
            dated.sort(key=lambda r: docs[r.document_id].published, reverse=True)
            return dated + undated
        if sort_by == 'popularity':
            return sorted(results, key=lambda r: docs[r.document_id].views, reverse=True)
        if sort_by == 'readingTime':
            return sorted(results, key=lambda r: self._reading_time(docs[r.document_id]))
        return results

    # -----------------------------------------------------------------------
    # Inspection
    # -----------------------------------------------------------------------

    def stats(self) -> Dict:
        snapshot = self._snapshot
        if snapshot is None:
            return {'initialized': False}
        return {
            'initialized': True,
            'generation': snapshot.generation,
            'total_documents': len(snapshot.documents),
            'total_clusters': len(snapshot.clusters),
            'total_terms': len(snapshot.index.idf),
            'total_entities': len(snapshot.aux.entities),
            'total_locations': len(snapshot.aux.locations),
            'built_at': snapshot.built_at,
            'cache_entries': len(self._cache),
        }


def _entity_matches(doc: Document, terms: Sequence[str]) -> Tuple[EntityMention, ...]:
    lowered = {t.lower() for t in terms}
    return tuple(e for e in doc.entities if e.name.lower() in lowered)
