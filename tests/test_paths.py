"""Tests for dot-path access into property bags."""

import pytest

from pagebuilder.editor.paths import get_path, has_path, set_path, split_path


class TestSplitPath:
    def test_keys_and_indexes(self):
        assert split_path("content.buttons.0.text") == ["content", "buttons", 0, "text"]

    def test_bracket_index_alias(self):
        assert split_path("content.buttons[1].url") == ["content", "buttons", 1, "url"]

    def test_empty_path_rejected(self):
        with pytest.raises(ValueError):
            split_path("")

    def test_empty_segment_rejected(self):
        with pytest.raises(ValueError):
            split_path("title..text")


class TestGetPath:
    props = {
        "title": {"text": "Hello", "tag": "h1"},
        "content": {"buttons": [{"text": "Go", "url": "/go"}]},
    }

    def test_nested_value(self):
        assert get_path(self.props, "title.text") == "Hello"

    def test_list_index(self):
        assert get_path(self.props, "content.buttons.0.url") == "/go"

    def test_missing_returns_default(self):
        assert get_path(self.props, "subtitle.text") is None
        assert get_path(self.props, "content.buttons.3.text", "n/a") == "n/a"

    def test_does_not_descend_into_strings(self):
        assert get_path(self.props, "title.text.length") is None

    def test_has_path(self):
        assert has_path(self.props, "content.buttons.0")
        assert not has_path(self.props, "content.buttons.1")
        assert has_path({"a": None}, "a")


class TestSetPath:
    def test_creates_missing_dicts(self):
        data: dict = {}
        set_path(data, "background.overlay.opacity", 0.5)
        assert data == {"background": {"overlay": {"opacity": 0.5}}}

    def test_creates_list_for_index_segment(self):
        data: dict = {}
        set_path(data, "content.buttons.1.text", "Second")
        assert data["content"]["buttons"] == [None, {"text": "Second"}]

    def test_overwrites_existing_value(self):
        data = {"title": {"text": "Old", "tag": "h1"}}
        set_path(data, "title.text", "New")
        assert data == {"title": {"text": "New", "tag": "h1"}}

    def test_replaces_scalar_intermediate(self):
        data = {"title": "flat"}
        set_path(data, "title.text", "Structured")
        assert data == {"title": {"text": "Structured"}}

    def test_round_trip_with_get(self):
        data: dict = {}
        set_path(data, "media.url", "/a.jpg")
        assert get_path(data, "media.url") == "/a.jpg"
