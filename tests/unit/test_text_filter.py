import unittest

from feed_scanner.core.text_filter import (
    ARABIC_RANGES,
    looks_like_description,
    matches_script,
    normalize_ranges,
    preview_text,
)


class MatchesScriptTest(unittest.TestCase):
    def test_empty_and_none_are_rejected(self):
        self.assertFalse(matches_script(""))
        self.assertFalse(matches_script(None))

    def test_arabic_word_matches(self):
        self.assertTrue(matches_script("مرحبا"))

    def test_latin_text_does_not_match(self):
        self.assertFalse(matches_script("hello"))
        self.assertFalse(matches_script("great video #fyp @someone"))

    def test_single_arabic_letter_in_mixed_text(self):
        self.assertTrue(matches_script("new drop ع #fyp"))

    def test_supplement_and_extended_blocks(self):
        self.assertTrue(matches_script("\u0750"))
        self.assertTrue(matches_script("x\u08a0"))
        self.assertFalse(matches_script("\u0800"))

    def test_custom_ranges(self):
        cyrillic = ((0x0400, 0x04FF),)
        self.assertTrue(matches_script("привет", cyrillic))
        self.assertFalse(matches_script("مرحبا", cyrillic))


class HelpersTest(unittest.TestCase):
    def test_normalize_ranges_orders_pairs(self):
        self.assertEqual(normalize_ranges([[0x06FF, 0x0600]]), ((0x0600, 0x06FF),))
        self.assertEqual(normalize_ranges([[0x0600, 0x06FF], [0x0750, 0x077F], [0x08A0, 0x08FF]]), ARABIC_RANGES)

    def test_normalize_ranges_rejects_bad_pair(self):
        with self.assertRaises(ValueError):
            normalize_ranges([[1, 2, 3]])

    def test_looks_like_description(self):
        self.assertTrue(looks_like_description("  #a "))
        self.assertTrue(looks_like_description("فيديو"))
        self.assertFalse(looks_like_description("x"))
        self.assertFalse(looks_like_description("  ...  "))
        self.assertFalse(looks_like_description(""))

    def test_preview_text_collapses_whitespace(self):
        out = preview_text("line1\nline2   with   spaces and more words", width=20)
        self.assertNotIn("\n", out)
        self.assertTrue(out.endswith("..."))
        self.assertEqual(preview_text(""), "(no description)")


if __name__ == "__main__":
    unittest.main()
