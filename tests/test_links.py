import unittest

import numpy as np

from content_intelligence.clustering import ClusterEngine
from content_intelligence.config import EngineConfig
from content_intelligence.links import LinkGenerator
from content_intelligence.models import Document, TopicCluster
from content_intelligence.similarity import SimilarityGraph

from fixtures import travel_corpus


class LinkGeneratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.docs = [Document(id=i, title=f"Post {i.upper()}") for i in ("a", "b", "c")]
        matrix = np.array([
            [0.0, 0.5, 0.2],
            [0.5, 0.0, 0.3],
            [0.2, 0.3, 0.0],
        ])
        self.graph = SimilarityGraph(["a", "b", "c"], matrix, features={})
        self.cluster = TopicCluster(id="x", name="X", description="",
                                    members=["a", "b", "c"], centroid="a")

    def test_cluster_and_hub_families(self):
        links = LinkGenerator(self.graph, self.docs).generate_links([self.cluster])
        self.assertEqual(
            [(l.source, l.target, l.relevance, l.origin) for l in links],
            [("a", "c", 0.8, "hub"), ("a", "b", 0.5, "cluster"), ("b", "c", 0.3, "cluster")],
        )

    def test_anchor_text_is_target_title(self):
        links = LinkGenerator(self.graph, self.docs).generate_links([self.cluster])
        for link in links:
            self.assertEqual(link.anchor_text, f"Post {link.target.upper()}")

    def test_cap(self):
        config = EngineConfig(max_links=2)
        links = LinkGenerator(self.graph, self.docs, config).generate_links([self.cluster])
        self.assertEqual(len(links), 2)
        self.assertEqual(links[0].relevance, 0.8)

    def test_no_clusters_no_links(self):
        self.assertEqual(LinkGenerator(self.graph, self.docs).generate_links([]), [])


class CorpusLinkTests(unittest.TestCase):
    def setUp(self) -> None:
        self.docs = travel_corpus()
        engine = ClusterEngine()
        self.clusters = engine.generate_clusters(self.docs)
        self.generator = LinkGenerator(engine.graph, self.docs)

    def test_output_is_bounded_deduplicated_and_sorted(self):
        links = self.generator.generate_links(self.clusters, include_entity_links=True,
                                              include_geographic_links=True)
        self.assertLessEqual(len(links), min(500, len(self.docs) * 5))
        pairs = [(l.source, l.target) for l in links]
        self.assertEqual(len(pairs), len(set(pairs)))
        relevances = [l.relevance for l in links]
        self.assertEqual(relevances, sorted(relevances, reverse=True))
        self.assertTrue(all(l.source != l.target for l in links))

    def test_hub_links_start_at_centroid(self):
        links = self.generator.generate_links(self.clusters)
        for link in links:
            self.assertIn(link.origin, ("cluster", "hub"))
            if link.origin == "hub":
                owner = next(c for c in self.clusters if link.target in c.members)
                self.assertEqual(link.source, owner.centroid)

    def test_geographic_family_is_opt_in(self):
        plain = self.generator.generate_links(self.clusters)
        self.assertNotIn("geographic", {l.origin for l in plain})
        self.assertEqual(self.generator.generate_links([]), [])
        geographic = self.generator.generate_links([], include_geographic_links=True)
        # Thailand has three posts, Colombia and Nepal two each
        self.assertEqual(len(geographic), 5)
        self.assertEqual({l.origin for l in geographic}, {"geographic"})
        for link in geographic:
            self.assertEqual(self.generator.documents[link.source].location,
                             self.generator.documents[link.target].location)


if __name__ == "__main__":
    unittest.main()
