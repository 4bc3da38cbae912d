"""
Tests for lenient model output parsing.
"""

import json

from hypothesis import given
from hypothesis import strategies as st

from postengine.services.parsing import (
    GENERIC_TAGS,
    MAX_CAPTIONS,
    MAX_HASHTAGS,
    MIN_HASHTAGS,
    fallback_hashtags,
    location_hashtag,
    normalize_hashtag,
    parse_bracketed_array,
    parse_captions,
    parse_direct_array,
    parse_hashtags,
    parse_object_field,
    run_strategies,
)


class TestStrategies:
    """Tests for individual parsing strategies."""

    def test_direct_array(self) -> None:
        assert parse_direct_array('["a", "b"]') == ["a", "b"]

    def test_direct_array_rejects_object(self) -> None:
        assert parse_direct_array('{"captions": ["a"]}') is None

    def test_object_field(self) -> None:
        strategy = parse_object_field("captions")
        assert strategy('{"captions": ["a", "b"]}') == ["a", "b"]

    def test_object_field_wrong_type(self) -> None:
        strategy = parse_object_field("captions")
        assert strategy('{"captions": "a"}') is None
        assert strategy('{"other": ["a"]}') is None

    def test_bracketed_array_inside_prose(self) -> None:
        raw = 'Sure! Here you go: ["one", "two"] Enjoy.'
        assert parse_bracketed_array(raw) == ["one", "two"]

    def test_bracketed_array_with_brackets_in_strings(self) -> None:
        raw = 'Result: ["use [brackets]", "ok"] done'
        assert parse_bracketed_array(raw) == ["use [brackets]", "ok"]

    def test_bracketed_array_skips_invalid_candidate(self) -> None:
        raw = "[not json] then [\"valid\"]"
        assert parse_bracketed_array(raw) == ["valid"]

    def test_bracketed_array_none(self) -> None:
        assert parse_bracketed_array("no arrays here") is None

    def test_first_non_none_wins(self) -> None:
        strategies = (lambda raw: None, lambda raw: ["second"], lambda raw: ["third"])
        assert run_strategies("x", strategies) == ["second"]


class TestParseCaptions:
    """Tests for parse_captions."""

    def test_empty_strings_dropped(self) -> None:
        assert parse_captions('["A","B","","C"]') == ["A", "B", "C"]

    def test_object_form(self) -> None:
        assert parse_captions('{"captions": ["Hello", "World"]}') == ["Hello", "World"]

    def test_code_fenced_output(self) -> None:
        raw = '```json\n["Fenced one", "Fenced two"]\n```'
        assert parse_captions(raw) == ["Fenced one", "Fenced two"]

    def test_non_strings_and_duplicates_dropped(self) -> None:
        assert parse_captions('[" A ", 3, null, "A", "B"]') == ["A", "B"]

    def test_capped_at_six(self) -> None:
        raw = json.dumps([f"caption {i}" for i in range(10)])
        assert len(parse_captions(raw)) == MAX_CAPTIONS

    def test_malformed_yields_empty(self) -> None:
        assert parse_captions("I cannot help with that.") == []

    def test_empty_input(self) -> None:
        assert parse_captions("") == []


class TestHashtags:
    """Tests for hashtag normalization and parsing."""

    def test_normalize(self) -> None:
        assert normalize_hashtag("#Sunset Yoga!") == "#sunsetyoga"
        assert normalize_hashtag("travel") == "#travel"

    def test_normalize_rejects_unusable(self) -> None:
        assert normalize_hashtag("#") is None
        assert normalize_hashtag(42) is None
        assert normalize_hashtag("#" + "a" * 31) is None

    def test_parse_object_form(self) -> None:
        raw = '{"hashtags": ["#Yoga", "#yoga", "#sunset", "bad tag!"]}'
        assert parse_hashtags(raw) == ["#yoga", "#sunset", "#badtag"]

    def test_parse_capped(self) -> None:
        raw = json.dumps({"hashtags": [f"#tag{i}" for i in range(30)]})
        assert len(parse_hashtags(raw)) == MAX_HASHTAGS

    def test_parse_malformed(self) -> None:
        assert parse_hashtags("nothing useful") == []

    def test_location_hashtag(self) -> None:
        assert location_hashtag("San Francisco, CA, US") == "#sanfranciscocaus"
        assert location_hashtag(None) is None
        assert location_hashtag(", ,") is None


class TestFallbackHashtags:
    """Tests for the deterministic hashtag fallback."""

    def test_sunset_yoga_retreat(self) -> None:
        tags = fallback_hashtags("sunset yoga retreat")

        assert len(tags) >= MIN_HASHTAGS
        assert len(set(tags)) == len(tags)
        assert all(tag.startswith("#") and tag == tag.lower() for tag in tags)
        assert tags[:3] == ["#sunset", "#yoga", "#retreat"]
        assert set(GENERIC_TAGS) <= set(tags)

    def test_location_included(self) -> None:
        tags = fallback_hashtags("coffee", "Paris, FR")
        assert "#parisfr" in tags

    def test_empty_topic_padded(self) -> None:
        tags = fallback_hashtags("")
        assert len(tags) == MIN_HASHTAGS

    def test_topic_words_capped(self) -> None:
        tags = fallback_hashtags("one two three four five six seven")
        assert "#six" not in tags

    @given(topic=st.text(max_size=200), location=st.one_of(st.none(), st.text(max_size=60)))
    def test_always_enough_unique_tags(self, topic: str, location: str | None) -> None:
        tags = fallback_hashtags(topic, location)
        assert len(tags) >= MIN_HASHTAGS
        assert len(set(tags)) == len(tags)
        assert all(tag.startswith("#") and len(tag) > 1 for tag in tags)


class TestParseProperties:
    """Parsing never raises, whatever the model returns."""

    @given(raw=st.text(max_size=500))
    def test_parse_captions_total(self, raw: str) -> None:
        captions = parse_captions(raw)
        assert len(captions) <= MAX_CAPTIONS
        assert all(c and c == c.strip() for c in captions)

    @given(raw=st.text(max_size=500))
    def test_parse_hashtags_total(self, raw: str) -> None:
        tags = parse_hashtags(raw)
        assert len(tags) <= MAX_HASHTAGS
        assert all(tag.startswith("#") for tag in tags)
