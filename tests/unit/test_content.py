"""Unit tests for content metrics, markdown rendering and slugs"""

import pytest

from marknest_service.core.content import compute_stats, normalize_tags, render_markdown, slugify


@pytest.mark.unit
class TestComputeStats:
    """Test size, word and character counting"""

    def test_counts_plain_text(self):
        stats = compute_stats("Hello brave new world")
        assert stats.word_count == 4
        assert stats.character_count == 21
        assert stats.size == 21

    def test_size_is_utf8_bytes(self):
        """Non-ASCII characters take more bytes than characters"""
        stats = compute_stats("café")
        assert stats.character_count == 4
        assert stats.size == 5

    def test_markup_and_digits_are_not_words(self):
        stats = compute_stats("<b>two</b> words 42")
        assert stats.word_count == 2

    def test_hyphenated_and_apostrophes_count_once(self):
        assert compute_stats("don't re-use it").word_count == 3

    def test_empty_content(self):
        stats = compute_stats("")
        assert (stats.size, stats.word_count, stats.character_count) == (0, 0, 0)


@pytest.mark.unit
class TestRenderMarkdown:
    """Test markdown rendering and sanitizing"""

    def test_renders_headings_and_emphasis(self):
        html = render_markdown("# Title\n\nSome **bold** text")
        assert "<h1>Title</h1>" in html
        assert "<strong>bold</strong>" in html

    def test_strips_script_tags(self):
        html = render_markdown("Hi <script>alert(1)</script>")
        assert "<script>" not in html

    def test_empty_content_renders_empty(self):
        assert render_markdown("") == ""


@pytest.mark.unit
class TestSlugsAndTags:
    """Test slug and tag helpers"""

    def test_slugify(self):
        assert slugify("  Meeting Notes: Q3 / 2026 ") == "meeting-notes-q3-2026"

    def test_slugify_transliterates_accents(self):
        assert slugify("Café Crème") == "cafe-creme"

    def test_normalize_tags_trims_and_dedupes_in_order(self):
        assert normalize_tags([" work ", "ideas", "work", "", "  "]) == ["work", "ideas"]
