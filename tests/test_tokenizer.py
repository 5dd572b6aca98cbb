import unittest

from content_intelligence.tokenizer import (
    estimate_reading_time, extract_keywords, rank_keywords, slugify, tokenize,
)


class TokenizerTests(unittest.TestCase):
    def test_lowercases_and_strips_punctuation(self):
        self.assertEqual(tokenize("Bangkok's STREET-food!"), ["bangkok", "street", "food"])

    def test_drops_short_tokens_and_stop_words(self):
        self.assertEqual(tokenize("We ate at the market and it was good"),
                         ["ate", "market", "good"])

    def test_empty_text(self):
        self.assertEqual(tokenize(""), [])
        self.assertEqual(tokenize(None), [])

    def test_word_characters_are_ascii_only(self):
        self.assertEqual(tokenize("Medellín café"), ["medell", "caf"])
        self.assertEqual(tokenize("Medellin cafe"), ["medellin", "cafe"])

    def test_same_input_same_tokens(self):
        text = "Night markets, night trains and night owls"
        self.assertEqual(tokenize(text), tokenize(text))


class KeywordTests(unittest.TestCase):
    def test_frequency_then_first_occurrence(self):
        text = "temple food temple market food temple"
        self.assertEqual(extract_keywords(text), ["temple", "food", "market"])

    def test_keyword_minimum_length(self):
        self.assertEqual(extract_keywords("bus bus bus ride"), ["ride"])

    def test_limit(self):
        self.assertEqual(len(extract_keywords("alpha bravo charlie delta echo", limit=2)), 2)

    def test_rank_counts_lists_not_occurrences(self):
        ranked = rank_keywords([["food", "food", "market"], ["market"], ["temple", "market"]])
        self.assertEqual(ranked, ["market", "food", "temple"])


class HelperTests(unittest.TestCase):
    def test_slugify(self):
        self.assertEqual(slugify("Food & Cuisine"), "food-cuisine")
        self.assertEqual(slugify("  Thailand Travel "), "thailand-travel")

    def test_reading_time_rounds_up(self):
        self.assertEqual(estimate_reading_time("word " * 200), 1)
        self.assertEqual(estimate_reading_time("word " * 201), 2)

    def test_reading_time_ignores_markup(self):
        self.assertEqual(estimate_reading_time("<p>" + "word " * 10 + "</p>", words_per_minute=10), 1)
        self.assertEqual(estimate_reading_time(""), 0)


if __name__ == "__main__":
    unittest.main()
