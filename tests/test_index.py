import math
import unittest

import numpy as np

from content_intelligence.index import AuxiliaryIndexes, TfidfIndex, build_snapshot
from content_intelligence.models import Document, TopicCluster
from content_intelligence.similarity import SimilarityGraph

from fixtures import scenario_corpus, travel_corpus


class TfidfIndexTests(unittest.TestCase):
    def setUp(self) -> None:
        self.docs = [
            Document(id="a", title="travel food market", content="street food market stalls"),
            Document(id="b", title="travel temple", content="temple ceremony"),
            Document(id="c", title="travel beach", content="beach island"),
            Document(id="d", title="the and of"),
        ]
        self.index = TfidfIndex.build(self.docs)

    def test_magnitudes_are_zero_or_one(self):
        for magnitude in self.index.magnitudes():
            self.assertTrue(math.isclose(magnitude, 0.0, abs_tol=1e-9)
                            or math.isclose(magnitude, 1.0, rel_tol=1e-9))

    def test_document_without_terms_has_zero_vector(self):
        self.assertEqual(self.index.term_frequencies["d"], {})
        self.assertEqual(float(np.linalg.norm(self.index.vector("d"))), 0.0)

    def test_idf_is_non_negative_and_zero_only_for_universal_terms(self):
        docs = self.docs[:3]
        index = TfidfIndex.build(docs)
        for term, idf in index.idf.items():
            self.assertGreaterEqual(idf, 0.0)
            in_all = all(term in index.term_frequencies[d.id] for d in docs)
            self.assertEqual(idf == 0.0, in_all, term)
        self.assertEqual(index.idf["travel"], 0.0)

    def test_idf_uses_natural_log(self):
        self.assertAlmostEqual(self.index.idf["temple"], math.log(4 / 1))
        self.assertAlmostEqual(self.index.idf["travel"], math.log(4 / 3))

    def test_term_frequency_is_normalized_by_token_count(self):
        tf = self.index.term_frequencies["a"]
        # travel food market street food market stalls
        self.assertAlmostEqual(tf["food"], 2 / 7)
        self.assertAlmostEqual(sum(tf.values()), 1.0)

    def test_score_terms(self):
        scores = self.index.score_terms(["temple", "unknown"])
        self.assertEqual(list(scores), ["b"])
        score, matched = scores["b"]
        self.assertAlmostEqual(score, (2 / 4) * math.log(4))
        self.assertEqual(matched, ["temple"])
        self.assertEqual(self.index.score_terms(["unknown"]), {})
        self.assertEqual(self.index.score_terms([]), {})

    def test_cosine_similarity_with_self_is_one(self):
        sims = self.index.cosine_similarities("a")
        self.assertAlmostEqual(sims[self.index.row("a")], 1.0)
        self.assertTrue(np.all(sims <= 1.0 + 1e-9))

    def test_empty_corpus(self):
        index = TfidfIndex.build([])
        self.assertEqual(len(index), 0)
        self.assertEqual(index.score_terms(["food"]), {})


class SnapshotTests(unittest.TestCase):
    def test_rebuild_is_independent_of_input_order(self):
        docs = travel_corpus()
        first = build_snapshot(docs)
        second = build_snapshot(list(reversed(docs)))
        self.assertEqual(first.index.doc_ids, second.index.doc_ids)
        self.assertEqual(first.index.vocabulary, second.index.vocabulary)
        self.assertEqual(first.index.idf, second.index.idf)
        np.testing.assert_allclose(first.index.magnitudes(), second.index.magnitudes())
        self.assertEqual(list(first.index.doc_ids), sorted(d.id for d in docs))

    def test_duplicate_ids_are_rejected(self):
        docs = scenario_corpus()
        with self.assertRaises(ValueError):
            build_snapshot(docs + [docs[0]])

    def test_membership_and_cluster_lookup(self):
        cluster = TopicCluster(id="geo-thailand", name="Thailand Travel", description="",
                               members=["bangkok-street-food", "chiang-mai-temples"])
        snapshot = build_snapshot(scenario_corpus(), [cluster], generation=3)
        self.assertEqual(snapshot.generation, 3)
        self.assertIs(snapshot.cluster_of("chiang-mai-temples"), cluster)
        self.assertIsNone(snapshot.cluster_of("medellin-coffee-tour"))

    def test_duplicate_cluster_ids_are_rejected(self):
        first = TopicCluster(id="semantic-a", name="A", description="",
                             members=["bangkok-street-food"])
        second = TopicCluster(id="semantic-a", name="B", description="",
                              members=["medellin-coffee-tour"])
        with self.assertRaises(ValueError):
            build_snapshot(scenario_corpus(), [first, second])

    def test_snapshot_carries_its_similarity_graph(self):
        docs = scenario_corpus()
        graph = SimilarityGraph.build(docs)
        self.assertIs(build_snapshot(docs, graph=graph).graph, graph)
        self.assertIsNone(build_snapshot(docs).graph)


class AuxiliaryIndexTests(unittest.TestCase):
    def setUp(self) -> None:
        cluster = TopicCluster(id="geo-thailand", name="Thailand Travel", description="",
                               members=["bangkok-street-food", "chiang-mai-temples"])
        self.aux = AuxiliaryIndexes.build(scenario_corpus(), [cluster])

    def test_entities_are_lowercased(self):
        self.assertEqual(self.aux.entities["thailand"],
                         ["bangkok-street-food", "chiang-mai-temples"])
        self.assertEqual(self.aux.entities["medellín"], ["medellin-coffee-tour"])

    def test_locations_include_country_codes(self):
        self.assertEqual(self.aux.locations["colombia"], ["medellin-coffee-tour"])
        self.assertEqual(self.aux.locations["th"],
                         ["bangkok-street-food", "chiang-mai-temples"])

    def test_clusters_are_keyed_by_name(self):
        self.assertEqual(self.aux.clusters["thailand travel"],
                         ["bangkok-street-food", "chiang-mai-temples"])


if __name__ == "__main__":
    unittest.main()
