"""
Content Intelligence — search, topic clustering, recommendations and internal
linking for a blog-sized document corpus.

Usage:
    from content_intelligence import ContentEngine, Document

    engine = ContentEngine()
    engine.rebuild(Document.from_dict(r) for r in records)
    results = engine.search("street food", limit=5)
    related = engine.recommend("bangkok-street-food", count=3)
    links = engine.generate_links()
"""

__version__ = "1.0.0"

from content_intelligence.config import EngineConfig
from content_intelligence.engine import ContentEngine
from content_intelligence.errors import DocumentNotFoundError, EngineNotInitializedError
from content_intelligence.models import (
    Document,
    EntityMention,
    InternalLink,
    Recommendation,
    SearchFilters,
    SearchResult,
    SimilarityEdge,
    TopicCluster,
)
from content_intelligence.search import SearchEngine
from content_intelligence.clustering import ClusterEngine
from content_intelligence.recommend import RecommendationEngine
from content_intelligence.links import LinkGenerator

__all__ = [
    "ContentEngine",
    "EngineConfig",
    "SearchEngine",
    "ClusterEngine",
    "RecommendationEngine",
    "LinkGenerator",
    "Document",
    "EntityMention",
    "InternalLink",
    "Recommendation",
    "SearchFilters",
    "SearchResult",
    "SimilarityEdge",
    "TopicCluster",
    "DocumentNotFoundError",
    "EngineNotInitializedError",
]
