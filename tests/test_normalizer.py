"""
Tests for normalizer module.
"""
import pytest
from datetime import datetime, timezone

from tnfeeds.hashing import generate_article_id
from tnfeeds.models import RawFeedItem, Source
from tnfeeds.normalizer import (
    CATEGORY_KEYWORDS,
    PLACEHOLDER_LINK,
    PLACEHOLDER_TITLE,
    ContentNormalizer,
    assign_category,
    clean_description,
    extract_image,
    match_category,
    normalize_date,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def source():
    return Source(
        name="WBIR",
        feed_url="https://example/feed.xml",
        region="Knoxville",
        category="Local",
    )


@pytest.fixture
def normalizer():
    return ContentNormalizer(description_max_length=200)


class TestCleanDescription:
    """Tests for clean_description."""

    def test_strips_tags(self):
        """Test that markup is removed."""
        assert clean_description("<p>Heavy rain <b>expected</b>...</p>", 200) == "Heavy rain expected..."

    def test_collapses_whitespace(self):
        """Test that runs of whitespace become single spaces."""
        assert clean_description("<p>  one\n\n two\t three </p>", 200) == "one two three"

    def test_decodes_entities(self):
        """Test that HTML entities are decoded."""
        assert clean_description("Smith &amp; Sons", 200) == "Smith & Sons"

    def test_short_text_unchanged(self):
        """Test that text under the cap has no ellipsis."""
        assert clean_description("short", 200) == "short"

    def test_exact_length_unchanged(self):
        """Test that text exactly at the cap has no ellipsis."""
        text = "x" * 160
        assert clean_description(text, 160) == text

    def test_long_text_truncated(self):
        """Test truncation to the cap plus a three character ellipsis."""
        result = clean_description("y" * 250, 200)

        assert len(result) == 203
        assert result == "y" * 200 + "..."

    def test_cap_is_caller_supplied(self):
        """Test that the compact 160 cap works the same way."""
        assert clean_description("z" * 161, 160) == "z" * 160 + "..."

    def test_empty_input(self):
        """Test that None and empty strings yield an empty description."""
        assert clean_description(None, 200) == ""
        assert clean_description("", 200) == ""


class TestExtractImage:
    """Tests for extract_image priority order."""

    def test_enclosure_wins_over_embedded_image(self):
        """Test that the enclosure is preferred to an <img> in the description."""
        item = RawFeedItem(
            enclosure_url="https://example/enclosure.jpg",
            description_html='<p><img src="https://example/inline.jpg"></p>',
        )
        assert extract_image(item) == "https://example/enclosure.jpg"

    def test_thumbnail_before_media(self):
        """Test that thumbnail is preferred to media content."""
        item = RawFeedItem(thumbnail_url="https://example/t.jpg", media_url="https://example/m.jpg")
        assert extract_image(item) == "https://example/t.jpg"

    def test_media_before_embedded_image(self):
        """Test that media content is preferred to an inline image."""
        item = RawFeedItem(media_url="https://example/m.jpg",
                           description_html='<img src="https://example/inline.jpg">')
        assert extract_image(item) == "https://example/m.jpg"

    def test_first_embedded_image(self):
        """Test that the first <img src> is used when nothing else exists."""
        item = RawFeedItem(description_html=(
            '<div><img alt="x" src="https://example/first.jpg"/>'
            '<img src="https://example/second.jpg"></div>'
        ))
        assert extract_image(item) == "https://example/first.jpg"

    def test_blank_candidates_skipped(self):
        """Test that whitespace-only fields don't count as images."""
        item = RawFeedItem(enclosure_url="  ", thumbnail_url="https://example/t.jpg")
        assert extract_image(item) == "https://example/t.jpg"

    def test_no_image(self):
        """Test that an item without images yields an empty string."""
        assert extract_image(RawFeedItem(description_html="<p>text</p>")) == ""


class TestCategories:
    """Tests for category assignment."""

    def test_table_order(self):
        """Test that categories are listed in their documented order."""
        assert [name for name, _ in CATEGORY_KEYWORDS] == [
            "News", "Politics", "Sports", "Business", "Arts & Culture",
            "Food", "Development", "Education", "Health",
        ]

    def test_explicit_category_wins(self):
        """Test that a feed category beats keyword matches."""
        item = RawFeedItem(title="Titans quarterback visits hospital", categories=["Weather"])
        assert assign_category(item, "The governor also attended", "Local") == "Weather"

    def test_first_of_list_used(self):
        """Test that the first explicit category is used."""
        item = RawFeedItem(title="x", categories=["Sports", "Local"])
        assert assign_category(item, "", "General") == "Sports"

    def test_first_match_not_best_match(self):
        """Test that earlier categories win even with more later matches."""
        # One Politics keyword against several Health keywords
        text = "Mayor tours hospital; doctor and medical staff discuss health vaccine"
        assert match_category(text) == "Politics"

    def test_keyword_match_is_case_insensitive(self):
        """Test matching against mixed-case titles."""
        item = RawFeedItem(title="New BBQ Restaurant Opens Downtown")
        assert assign_category(item, "", "General") == "Food"

    def test_content_is_searched(self):
        """Test that the description text participates in matching."""
        item = RawFeedItem(title="Big night downtown")
        assert assign_category(item, "The concert sold out", "General") == "Arts & Culture"

    def test_falls_back_to_source_default(self):
        """Test that unmatched items use the source category."""
        item = RawFeedItem(title="Flood Warning Issued")
        assert assign_category(item, "Heavy rain expected...", "Local") == "Local"


class TestNormalizeDate:
    """Tests for normalize_date."""

    def test_rfc822(self):
        """Test RSS pubDate format."""
        assert normalize_date("Mon, 01 Jan 2024 10:00:00 GMT", NOW) == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_iso_with_offset(self):
        """Test ISO-8601 with an offset is converted to UTC."""
        assert normalize_date("2024-01-01T04:00:00-06:00", NOW) == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_us_timezone_abbreviation(self):
        """Test that CST style abbreviations are understood."""
        assert normalize_date("Mon, 01 Jan 2024 04:00:00 CST", NOW) == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        """Test that dates without a zone are taken as UTC."""
        assert normalize_date("2024-01-01 10:00:00", NOW) == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw", [None, "", "   ", "not a date", "yesterday-ish"])
    def test_unparsable_uses_now(self, raw):
        """Test that missing or invalid dates become the processing time."""
        assert normalize_date(raw, NOW) == NOW


class TestContentNormalizer:
    """Tests for ContentNormalizer.normalize."""

    def test_invalid_length_raises(self):
        """Test that the description cap must be positive."""
        with pytest.raises(ValueError):
            ContentNormalizer(description_max_length=0)

    def test_end_to_end_scenario(self, normalizer, source):
        """Test the WBIR flood warning example."""
        item = RawFeedItem(
            title="Flood Warning Issued",
            link="https://example/flood",
            description_html="<p>Heavy rain expected...</p>",
            pub_date="Mon, 01 Jan 2024 10:00:00 GMT",
        )

        article = normalizer.normalize(item, source, NOW)

        assert article.source == "WBIR"
        assert article.region == "Knoxville"
        assert article.category == "Local"
        assert article.description == "Heavy rain expected..."
        assert article.id == generate_article_id("https://example/flood", "Flood Warning Issued")
        assert article.pub_date == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert article.to_dict()["pubDate"] == "2024-01-01T10:00:00+00:00"
        assert article.image == ""

    def test_feed_category_overrides_source(self, normalizer, source):
        """Test that an explicit feed category is used."""
        item = RawFeedItem(title="Flood Warning Issued", link="https://example/flood",
                           categories=["Weather"])
        assert normalizer.normalize(item, source, NOW).category == "Weather"

    def test_idempotent(self, normalizer, source):
        """Test that normalizing the same item twice gives equal articles."""
        item = RawFeedItem(
            title="Titans win",
            link="https://example/titans",
            description_html='<p>Big game <img src="https://example/g.jpg"></p>',
        )
        assert normalizer.normalize(item, source, NOW) == normalizer.normalize(item, source, NOW)

    def test_missing_fields_get_placeholders(self, normalizer, source):
        """Test that an empty item is kept with placeholder values."""
        article = normalizer.normalize(RawFeedItem(), source, NOW)

        assert article.title == PLACEHOLDER_TITLE
        assert article.link == PLACEHOLDER_LINK
        assert article.description == ""
        assert article.pub_date == NOW
        assert article.category == "Local"
        assert article.id == generate_article_id("undefined", "undefined")

    def test_blank_title_gets_placeholder(self, normalizer, source):
        """Test that whitespace-only titles are replaced."""
        article = normalizer.normalize(RawFeedItem(title="   ", link="https://example/x"), source, NOW)
        assert article.title == "Unknown Article"

    def test_id_uses_raw_link_and_title(self, normalizer, source):
        """Test that the id hashes the link as published, before cleanup."""
        item = RawFeedItem(title="Flood Warning Issued", link="  https://example/flood\n")

        article = normalizer.normalize(item, source, NOW)

        assert article.link == "https://example/flood"
        assert article.id == generate_article_id("  https://example/flood\n", "Flood Warning Issued")
        assert article.id != generate_article_id("https://example/flood", "Flood Warning Issued")

    def test_missing_link_hashes_as_undefined(self, normalizer, source):
        """Test that a link-less item keeps the placeholder but hashes "undefined"."""
        article = normalizer.normalize(RawFeedItem(title="Council meets"), source, NOW)

        assert article.link == PLACEHOLDER_LINK
        assert article.id == generate_article_id("undefined", "Council meets")

    def test_uses_configured_cap(self, source):
        """Test that the normalizer applies its description cap."""
        compact = ContentNormalizer(description_max_length=160)
        article = compact.normalize(RawFeedItem(title="t", description_html="w" * 300), source, NOW)

        assert article.description == "w" * 160 + "..."

    def test_category_uses_full_text_not_truncated(self, source):
        """Test that keywords past the cap still count."""
        compact = ContentNormalizer(description_max_length=10)
        item = RawFeedItem(title="Update", description_html="Lorem ipsum dolor sit amet hospital")

        assert compact.normalize(item, source, NOW).category == "Health"
