"""
clustering.py — Topic clusters from four independent strategies.

Candidate generation (a document may land in several candidates):

    geographic    first region in list order with a keyword or country match   min 2
    activity      every category with >= 2 distinct keyword matches            min 2
    content type  first type matched in title + excerpt                         min 3
    semantic      greedy: each unassigned document plus all documents with
                  similarity >= 0.3, in corpus (id) order                       min 2

Optimization walks candidates by (coherence + competitive strength)
descending. Each keeps only members not claimed by a better candidate and is
dropped when that leaves it under its strategy's minimum size. Afterwards a
document belongs to at most one cluster.

Corpus order is id order, so repeated runs on the same corpus yield the same
clusters regardless of how the content store enumerated documents.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from content_intelligence.config import EngineConfig
from content_intelligence.index import order_documents
from content_intelligence.models import Document, TopicCluster
from content_intelligence.similarity import SimilarityGraph
from content_intelligence.tokenizer import rank_keywords, slugify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Category:
    name: str
    keywords: Tuple[str, ...]
    country_codes: Tuple[str, ...] = ()


REGIONS = (
    Category('Thailand', ('thailand', 'thai', 'bangkok', 'chiang mai', 'phuket', 'krabi'), ('th',)),
    Category('Colombia', ('colombia', 'colombian', 'bogota', 'medellin', 'cartagena'), ('co',)),
    Category('Vietnam', ('vietnam', 'vietnamese', 'ho chi minh', 'hanoi', 'da nang'), ('vn',)),
    Category('Indonesia', ('indonesia', 'indonesian', 'bali', 'jakarta', 'yogyakarta'), ('id',)),
    Category('India', ('india', 'indian', 'delhi', 'mumbai', 'goa', 'kerala'), ('in',)),
    Category('Nepal', ('nepal', 'nepalese', 'kathmandu', 'pokhara', 'everest'), ('np',)),
    Category('Europe', ('europe', 'european', 'spain', 'germany', 'italy', 'france'),
             ('es', 'de', 'it', 'fr')),
)

ACTIVITIES = (
    Category('Food & Cuisine', ('food', 'restaurant', 'cuisine', 'eat', 'dining', 'street food', 'cooking')),
    Category('Temples & Culture', ('temple', 'culture', 'heritage', 'traditional', 'festival', 'ceremony')),
    Category('Beaches & Islands', ('beach', 'island', 'ocean', 'snorkeling', 'diving', 'surf')),
    Category('Trekking & Adventure', ('trek', 'hiking', 'mountain', 'adventure', 'climb', 'explore')),
    Category('Cities & Urban', ('city', 'urban', 'downtown', 'nightlife', 'shopping', 'metro')),
    Category('Nature & Wildlife', ('nature', 'wildlife', 'forest', 'national park', 'animals', 'jungle')),
    Category('Transportation', ('transport', 'bus', 'train', 'flight', 'taxi', 'motorbike')),
    Category('Accommodation', ('hotel', 'hostel', 'guesthouse', 'accommodation', 'stay', 'airbnb')),
)

CONTENT_TYPES = (
    Category('Travel Guides', ('guide', 'how to', 'complete guide', 'ultimate guide', 'tips')),
    Category('Travel Stories', ('story', 'experience', 'journey', 'adventure', 'happened')),
    Category('Practical Tips', ('tips', 'advice', 'practical', 'budget', 'money', 'cost')),
    Category('Photo Essays', ('photo', 'picture', 'gallery', 'visual', 'image')),
    Category('Reviews', ('review', 'recommend', 'worth it', 'opinion', 'rating')),
)

GEO_MIN_SIZE = 2
ACTIVITY_MIN_SIZE = 2
ACTIVITY_MIN_MATCHES = 2
TYPE_MIN_SIZE = 3
SEMANTIC_MIN_SIZE = 2


def _matches(category: Category, text: str) -> List[str]:
    return [kw for kw in category.keywords if kw in text]


class ClusterEngine:
    """
    Generates and optimizes topic clusters.

    The similarity graph and clusters of the last run are kept together so
    link generation can reuse the graph the clusters were scored with.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self._last: Optional[Tuple[SimilarityGraph, Tuple[TopicCluster, ...]]] = None

    @property
    def graph(self) -> Optional[SimilarityGraph]:
        return self._last[0] if self._last else None

    @property
    def clusters(self) -> List[TopicCluster]:
        return list(self._last[1]) if self._last else []

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def generate_clusters(self, documents: Sequence[Document]) -> List[TopicCluster]:
        t0 = time.perf_counter()
        docs = order_documents(documents)
        graph = SimilarityGraph.build(docs, self.config)
        if len(docs) < 2:
            self._last = (graph, ())
            return []

        candidates = (
            self._geographic_clusters(docs, graph)
            + self._activity_clusters(docs, graph)
            + self._content_type_clusters(docs, graph)
            + self._semantic_clusters(docs, graph)
        )
        optimized = self._optimize(candidates, docs, graph)
        self._last = (graph, tuple(optimized))

        for cluster in optimized:
            logger.debug('Cluster "%s": coherence=%.2f competitive=%.2f members=%d',
                         cluster.name, cluster.coherence,
                         cluster.competitive_strength, len(cluster.members))
        logger.info("Generated %d clusters from %d candidates over %d documents in %.1f ms",
                    len(optimized), len(candidates), len(docs),
                    (time.perf_counter() - t0) * 1000)
        return optimized

    def assign_hub_pages(self, clusters: Sequence[TopicCluster]) -> List[TopicCluster]:
        """Give clusters with enough members a /topics/<slug> hub page."""
        for cluster in clusters:
            if len(cluster.members) >= self.config.hub_min_size:
                cluster.hub_page = f'/topics/{slugify(cluster.name)}'
        return list(clusters)

    def analyze(self, cluster: TopicCluster) -> Dict:
        actions = []
        if len(cluster.members) < 5:
            actions.append('Create more content for this topic cluster')
        if cluster.coherence < 0.5:
            actions.append('Improve content consistency within cluster')
        if not cluster.hub_page:
            actions.append('Create a topic hub page for this cluster')
        return {
            'coherence': cluster.coherence,
            'topic_strength': len(cluster.members) / 10,
            'competitive_value': cluster.competitive_strength,
            'opportunity': cluster.quality / 2,
            'recommended_actions': actions,
        }

    def stats(self) -> Dict:
        clusters = self.clusters
        graph = self.graph
        if not clusters:
            return {'total_clusters': 0,
                    'total_documents': len(graph.doc_ids) if graph else 0}
        return {
            'total_clusters': len(clusters),
            'total_documents': len(graph.doc_ids),
            'clustered_documents': sum(len(c.members) for c in clusters),
            'avg_cluster_size': round(sum(len(c.members) for c in clusters) / len(clusters), 2),
            'avg_coherence': round(sum(c.coherence for c in clusters) / len(clusters), 4),
        }

    # -----------------------------------------------------------------------
    # Strategies
    # -----------------------------------------------------------------------

    def _geographic_clusters(self, docs: Sequence[Document],
                             graph: SimilarityGraph) -> List[TopicCluster]:
        groups: Dict[str, List[Document]] = {}
        for doc in docs:
            text = ' '.join([doc.content, doc.title, doc.excerpt,
                             ' '.join(doc.tags), doc.location or '']).lower()
            country = (doc.country_code or '').strip().lower()
            for region in REGIONS:
                if _matches(region, text) or country in region.country_codes:
                    groups.setdefault(region.name, []).append(doc)
                    break

        return [
            self._make_cluster(
                f'geo-{slugify(region.name)}', f'{region.name} Travel',
                f'Travel experiences and guides for {region.name}',
                groups[region.name], 'geographic', GEO_MIN_SIZE, graph,
            )
            for region in REGIONS
            if len(groups.get(region.name, ())) >= GEO_MIN_SIZE
        ]

    def _activity_clusters(self, docs: Sequence[Document],
                           graph: SimilarityGraph) -> List[TopicCluster]:
        groups: Dict[str, List[Document]] = {}
        for doc in docs:
            text = ' '.join([doc.content, doc.title, doc.excerpt,
                             ' '.join(doc.tags)]).lower()
            for activity in ACTIVITIES:
                if len(_matches(activity, text)) >= ACTIVITY_MIN_MATCHES:
                    groups.setdefault(activity.name, []).append(doc)

        return [
            self._make_cluster(
                f'activity-{slugify(activity.name)}', activity.name,
                f'Posts about {activity.name.lower()} during travel',
                groups[activity.name], 'activity', ACTIVITY_MIN_SIZE, graph,
            )
            for activity in ACTIVITIES
            if len(groups.get(activity.name, ())) >= ACTIVITY_MIN_SIZE
        ]

    def _content_type_clusters(self, docs: Sequence[Document],
                               graph: SimilarityGraph) -> List[TopicCluster]:
        groups: Dict[str, List[Document]] = {}
        for doc in docs:
            text = f'{doc.title} {doc.excerpt}'.lower()
            for ctype in CONTENT_TYPES:
                if _matches(ctype, text):
                    groups.setdefault(ctype.name, []).append(doc)
                    break

        return [
            self._make_cluster(
                f'type-{slugify(ctype.name)}', ctype.name,
                f'Collection of {ctype.name.lower()} posts',
                groups[ctype.name], 'content_type', TYPE_MIN_SIZE, graph,
            )
            for ctype in CONTENT_TYPES
            if len(groups.get(ctype.name, ())) >= TYPE_MIN_SIZE
        ]

    def _semantic_clusters(self, docs: Sequence[Document],
                           graph: SimilarityGraph) -> List[TopicCluster]:
        by_id = {d.id: d for d in docs}
        assigned = set()
        clusters = []
        for doc in docs:
            if doc.id in assigned:
                continue
            similar = graph.neighbors(doc.id, self.config.semantic_threshold)
            if len(similar) + 1 < SEMANTIC_MIN_SIZE:
                continue
            member_ids = set(similar) | {doc.id}
            members = [d for d in docs if d.id in member_ids]
            assigned.update(member_ids)

            keywords = rank_keywords((graph.features[d.id].keywords for d in members),
                                     self.config.keywords_per_cluster)
            name = ' & '.join(k.capitalize() for k in keywords[:2]) or by_id[doc.id].title
            description = (f"Posts about {', '.join(keywords[:3])} and related topics"
                           if keywords else f'Posts related to {by_id[doc.id].title}')
            clusters.append(self._make_cluster(
                f'semantic-{doc.id}', name, description,
                members, 'semantic', SEMANTIC_MIN_SIZE, graph,
            ))
        return clusters

    # -----------------------------------------------------------------------
    # Scoring and optimization
    # -----------------------------------------------------------------------

    def _make_cluster(self, cluster_id: str, name: str, description: str,
                      members: Sequence[Document], strategy: str, min_size: int,
                      graph: SimilarityGraph) -> TopicCluster:
        cluster = TopicCluster(id=cluster_id, name=name, description=description,
                               strategy=strategy, min_size=min_size)
        self._score(cluster, members, graph)
        return cluster

    def _score(self, cluster: TopicCluster, members: Sequence[Document],
               graph: SimilarityGraph):
        ids = [d.id for d in members]
        cluster.members = ids
        cluster.keywords = rank_keywords((graph.features[i].keywords for i in ids),
                                         self.config.keywords_per_cluster)
        cluster.centroid = graph.centroid(ids)
        cluster.coherence = graph.mean_pairwise(ids)
        cluster.competitive_strength = self._competitive_strength(members)

    def _competitive_strength(self, members: Sequence[Document]) -> float:
        if not members:
            return 0.0
        cfg = self.config
        avg_views = sum(d.views for d in members) / len(members)
        avg_quality = sum(
            d.content_quality if d.content_quality is not None else cfg.default_quality
            for d in members
        ) / len(members)
        strength = (avg_views / cfg.views_scale + avg_quality) / 2
        return max(0.0, min(1.0, strength))

    def _optimize(self, candidates: List[TopicCluster], docs: Sequence[Document],
                  graph: SimilarityGraph) -> List[TopicCluster]:
        by_id = {d.id: d for d in docs}
        ranked = sorted(candidates, key=lambda c: -c.quality)
        claimed = set()
        optimized = []
        for cluster in ranked:
            available = [i for i in cluster.members if i not in claimed]
            if len(available) < cluster.min_size:
                continue
            claimed.update(available)
            if len(available) != len(cluster.members):
                self._score(cluster, [by_id[i] for i in available], graph)
            optimized.append(cluster)
        return optimized
