import time
import unittest

from content_intelligence.cache import TTLCache


class TTLCacheTests(unittest.TestCase):
    def test_set_and_get(self):
        cache = TTLCache(ttl=60)
        cache.set("thailand", [1, 2])
        self.assertEqual(cache.get("thailand"), [1, 2])
        self.assertIn("thailand", cache)
        self.assertIsNone(cache.get("nepal"))
        self.assertEqual(cache.get("nepal", "fallback"), "fallback")

    def test_entries_expire(self):
        cache = TTLCache(ttl=0.05)
        cache.set("key", "value")
        time.sleep(0.1)
        self.assertIsNone(cache.get("key"))
        self.assertEqual(len(cache), 0)

    def test_per_entry_ttl(self):
        cache = TTLCache(ttl=60)
        cache.set("short", 1, ttl=0.05)
        cache.set("long", 2)
        time.sleep(0.1)
        self.assertNotIn("short", cache)
        self.assertEqual(cache.get("long"), 2)

    def test_least_recently_used_is_evicted(self):
        cache = TTLCache(ttl=60, max_items=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        self.assertEqual(len(cache), 2)
        self.assertNotIn("b", cache)
        self.assertEqual(cache.get("a"), 1)
        self.assertEqual(cache.get("c"), 3)

    def test_hit_and_miss_counters(self):
        cache = TTLCache()
        cache.set("a", 1)
        cache.get("a")
        cache.get("b")
        self.assertEqual((cache.hits, cache.misses), (1, 1))

    def test_delete_clear_and_dump(self):
        cache = TTLCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        self.assertEqual([entry["key"] for entry in cache.dump()], ["b"])
        cache.clear()
        self.assertEqual(cache.dump(), [])

    def test_invalid_limits(self):
        with self.assertRaises(ValueError):
            TTLCache(ttl=0)
        with self.assertRaises(ValueError):
            TTLCache(max_items=0)


if __name__ == "__main__":
    unittest.main()
