"""
engine.py — ContentEngine: one object wiring search, clustering,
recommendations and link generation over a shared corpus.

    engine = ContentEngine(EngineConfig.from_env())
    engine.rebuild(documents)
    engine.search("street food", limit=5)
    engine.recommend("bangkok-street-food", count=3)
    engine.generate_links()

A rebuild clusters the corpus, assigns hub pages and publishes a new search
snapshot carrying the clusters and the similarity graph. Queries keep using
the previous snapshot until the new one is published.
"""

import logging
import threading
import time
from typing import Dict, Iterable, List, Optional, Tuple

from content_intelligence.cache import TTLCache
from content_intelligence.clustering import ClusterEngine
from content_intelligence.config import EngineConfig
from content_intelligence.errors import EngineNotInitializedError
from content_intelligence.index import CorpusSnapshot, order_documents
from content_intelligence.links import LinkGenerator
from content_intelligence.models import (
    Document, InternalLink, Recommendation, SearchFilters, SearchResult, TopicCluster,
)
from content_intelligence.recommend import RecommendationEngine
from content_intelligence.search import SearchEngine
from content_intelligence.similarity import SimilarityGraph

logger = logging.getLogger(__name__)


class ContentEngine:

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.cache = TTLCache(self.config.cache_ttl, self.config.cache_max_items)
        self.search_engine = SearchEngine(self.config, self.cache)
        self.cluster_engine = ClusterEngine(self.config)
        self.recommender = RecommendationEngine(self.search_engine, self.config, self.cache)
        self._rebuild_lock = threading.Lock()

    # -----------------------------------------------------------------------
    # Build
    # -----------------------------------------------------------------------

    def rebuild(self, documents: Iterable[Document]) -> CorpusSnapshot:
        with self._rebuild_lock:
            t0 = time.perf_counter()
            docs = order_documents(documents)
            clusters = self.cluster_engine.generate_clusters(docs)
            self.cluster_engine.assign_hub_pages(clusters)
            snapshot = self.search_engine.initialize(docs, clusters,
                                                     graph=self.cluster_engine.graph)
        logger.info("Rebuilt content engine: %d documents, %d clusters in %.1f ms",
                    len(docs), len(clusters), (time.perf_counter() - t0) * 1000)
        return snapshot

    @property
    def initialized(self) -> bool:
        return self.search_engine.initialized

    @property
    def snapshot(self) -> CorpusSnapshot:
        return self.search_engine.snapshot

    @property
    def clusters(self) -> List[TopicCluster]:
        return list(self.snapshot.clusters)

    @property
    def graph(self) -> SimilarityGraph:
        return self._graph(self.snapshot)

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def search(self, query: str, filters: Optional[SearchFilters] = None,
               sort_by: str = 'relevance', limit: Optional[int] = None,
               offset: int = 0, include_entities: bool = False) -> List[SearchResult]:
        return self.search_engine.search(query, filters=filters, sort_by=sort_by,
                                         limit=limit, offset=offset,
                                         include_entities=include_entities)

    def recommend(self, document_id: str, count: int = 5) -> List[Recommendation]:
        return self.recommender.recommend(document_id, count)

    def generate_links(self, clusters: Optional[List[TopicCluster]] = None,
                       include_entity_links: bool = False,
                       include_geographic_links: bool = False) -> List[InternalLink]:
        snapshot = self.snapshot
        generator = LinkGenerator(self._graph(snapshot), snapshot.documents, self.config)
        if clusters is None:
            clusters = list(snapshot.clusters)
        return generator.generate_links(clusters, include_entity_links,
                                        include_geographic_links)

    def cluster_report(self) -> List[Tuple[TopicCluster, Dict]]:
        return [(c, self.cluster_engine.analyze(c)) for c in self.clusters]

    def stats(self) -> Dict:
        return {
            'search': self.search_engine.stats(),
            'clusters': self.cluster_engine.stats(),
            'cache': {'entries': len(self.cache), 'hits': self.cache.hits,
                      'misses': self.cache.misses},
        }

    @staticmethod
    def _graph(snapshot: CorpusSnapshot) -> SimilarityGraph:
        if snapshot.graph is None:
            raise EngineNotInitializedError("Content engine not initialized")
        return snapshot.graph
