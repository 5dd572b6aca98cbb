"""
links.py — Internal link suggestions from clusters and the similarity graph.

Families, in the order they are generated:

    cluster     every member pair (i < j) with similarity >= 0.3,
                relevance = similarity, anchor = target title
    hub         cluster centroid -> every other member, relevance 0.8
    entity      opt-in: pairs whose entity-name Jaccard >= 0.3
    geographic  opt-in: pairs sharing a location, relevance 0.7

Links are deduplicated on (source, target) keeping the first one generated,
sorted by relevance (stable), and capped at min(500, 5 * corpus size).
"""

import logging
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from content_intelligence.config import EngineConfig
from content_intelligence.models import Document, InternalLink, TopicCluster
from content_intelligence.similarity import SimilarityGraph

logger = logging.getLogger(__name__)


class LinkGenerator:

    def __init__(self, graph: SimilarityGraph, documents: Sequence[Document],
                 config: Optional[EngineConfig] = None):
        self.graph = graph
        self.config = config or EngineConfig()
        self.documents: Mapping[str, Document] = {d.id: d for d in documents}

    @property
    def max_links(self) -> int:
        return min(self.config.max_links,
                   len(self.documents) * self.config.links_per_document)

    def generate_links(self, clusters: Sequence[TopicCluster],
                       include_entity_links: bool = False,
                       include_geographic_links: bool = False) -> List[InternalLink]:
        links: List[InternalLink] = []
        for cluster in clusters:
            links.extend(self._cluster_links(cluster))
        for cluster in clusters:
            links.extend(self._hub_links(cluster))
        if include_entity_links:
            links.extend(self._entity_links())
        if include_geographic_links:
            links.extend(self._geographic_links())

        unique = _dedupe(links)
        unique.sort(key=lambda l: l.relevance, reverse=True)
        ranked = unique[:self.max_links]
        logger.info("Generated %d internal links (%d candidates, cap %d)",
                    len(ranked), len(links), self.max_links)
        return ranked

    def _anchor(self, doc_id: str) -> str:
        doc = self.documents.get(doc_id)
        return doc.title if doc else 'Related post'

    def _link(self, source: str, target: str, relevance: float, origin: str) -> InternalLink:
        return InternalLink(source=source, target=target, anchor_text=self._anchor(target),
                            relevance=relevance, origin=origin)

    def _cluster_links(self, cluster: TopicCluster) -> Iterator[InternalLink]:
        members = cluster.members
        for i, a in enumerate(members):
            for b in members[i + 1:]:
                similarity = self.graph.score(a, b)
                if similarity >= self.config.link_threshold:
                    yield self._link(a, b, similarity, 'cluster')

    def _hub_links(self, cluster: TopicCluster) -> Iterator[InternalLink]:
        hub = cluster.centroid
        if not hub:
            return
        for member in cluster.members:
            if member != hub:
                yield self._link(hub, member, self.config.hub_relevance, 'hub')

    def _entity_links(self) -> Iterator[InternalLink]:
        features = self.graph.features
        ids = self.graph.doc_ids
        for i, a in enumerate(ids):
            ents_a = features[a].entities
            if not ents_a:
                continue
            for b in ids[i + 1:]:
                ents_b = features[b].entities
                shared = ents_a & ents_b
                if not shared:
                    continue
                overlap = len(shared) / len(ents_a | ents_b)
                if overlap >= self.config.link_threshold:
                    yield self._link(a, b, overlap, 'entity')

    def _geographic_links(self) -> Iterator[InternalLink]:
        by_location: Dict[str, List[str]] = {}
        for doc_id in self.graph.doc_ids:
            location = self.graph.features[doc_id].location
            if location:
                by_location.setdefault(location, []).append(doc_id)
        for location in sorted(by_location):
            ids = by_location[location]
            for i, a in enumerate(ids):
                for b in ids[i + 1:]:
                    yield self._link(a, b, self.config.location_relevance, 'geographic')


def _dedupe(links: Sequence[InternalLink]) -> List[InternalLink]:
    seen = set()
    unique = []
    for link in links:
        key = (link.source, link.target)
        if key in seen:
            continue
        seen.add(key)
        unique.append(link)
    return unique
