import dataclasses
import unittest
from unittest import mock

from content_intelligence.errors import DocumentNotFoundError, EngineNotInitializedError
from content_intelligence.models import TopicCluster
from content_intelligence.recommend import RecommendationEngine
from content_intelligence.search import SearchEngine

from fixtures import scenario_corpus, travel_corpus


def thailand_cluster():
    return TopicCluster(id="geo-thailand", name="Thailand Travel", description="",
                        members=["bangkok-street-food", "chiang-mai-temples"])


class RecommendationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.search = SearchEngine()
        self.search.initialize(scenario_corpus(), [thailand_cluster()])
        self.engine = RecommendationEngine(self.search)

    def test_requires_initialized_search(self):
        with self.assertRaises(EngineNotInitializedError):
            RecommendationEngine(SearchEngine()).recommend("bangkok-street-food")

    def test_unknown_document(self):
        with self.assertRaises(DocumentNotFoundError) as ctx:
            self.engine.recommend("no-such-post")
        self.assertEqual(ctx.exception.document_id, "no-such-post")
        self.assertIsInstance(ctx.exception, KeyError)

    def test_cluster_mate_ranks_first(self):
        recs = self.engine.recommend("bangkok-street-food", 3)
        self.assertEqual(recs[0].document_id, "chiang-mai-temples")
        self.assertEqual(recs[0].recommendation_type, "cluster")
        self.assertAlmostEqual(recs[0].score, 0.8)
        self.assertIn("Thailand Travel", recs[0].reasoning)
        self.assertEqual(recs[0].title, "Chiang Mai Temples")

    def test_popularity_fills_remaining_slots(self):
        recs = self.engine.recommend("bangkok-street-food", 3)
        by_id = {r.document_id: r for r in recs}
        medellin = by_id["medellin-coffee-tour"]
        self.assertEqual(medellin.recommendation_type, "popular")
        self.assertAlmostEqual(medellin.score, 0.5 * 300 / 800)

    def test_never_recommends_itself(self):
        search = SearchEngine()
        search.initialize(travel_corpus())
        engine = RecommendationEngine(search)
        for doc in travel_corpus():
            recs = engine.recommend(doc.id, 10)
            self.assertNotIn(doc.id, [r.document_id for r in recs])

    def test_results_are_sorted_and_truncated(self):
        search = SearchEngine()
        search.initialize(travel_corpus())
        engine = RecommendationEngine(search)
        recs = engine.recommend("bangkok-night-markets", 2)
        self.assertLessEqual(len(recs), 2)
        scores = [r.score for r in engine.recommend("bangkok-night-markets", 10)]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertEqual(engine.recommend("bangkok-night-markets", 0), [])

    def test_cached_recommendations_cannot_be_modified(self):
        first = self.engine.recommend("bangkok-street-food", 3)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            first[0].score = 0.0
        second = self.engine.recommend("bangkok-street-food", 3)
        self.assertAlmostEqual(second[0].score, 0.8)
        self.assertEqual(second[0].matching_factors, ("topic cluster",))

    def test_negative_count(self):
        with self.assertRaises(ValueError):
            self.engine.recommend("bangkok-street-food", -1)

    def test_entity_overlap_score(self):
        with mock.patch.object(RecommendationEngine, "_cluster_signal", return_value=[]):
            recs = RecommendationEngine(self.search).recommend("chiang-mai-temples", 5)
        entity = [r for r in recs if r.recommendation_type == "entity"]
        # Geographic (0.7) beats the entity score of 1 shared / 2 entities
        self.assertEqual(entity, [])
        self.assertEqual(recs[0].recommendation_type, "geographic")
        self.assertAlmostEqual(recs[0].score, 0.7)

    def test_failing_signal_is_isolated(self):
        with mock.patch.object(RecommendationEngine, "_cluster_signal",
                               side_effect=RuntimeError("boom")):
            with self.assertLogs("content_intelligence.recommend", level="ERROR") as logs:
                recs = RecommendationEngine(self.search).recommend("bangkok-street-food", 3)
        self.assertTrue(any("cluster" in line for line in logs.output))
        self.assertIn("chiang-mai-temples", [r.document_id for r in recs])
        self.assertNotIn("bangkok-street-food", [r.document_id for r in recs])


if __name__ == "__main__":
    unittest.main()
