"""Tests for the fact / visible-text merge."""

from __future__ import annotations

from schemalift.pipeline.merge import merge, merge_with_stats


class TestMerge:
    def test_facts_prepended_with_blank_line(self) -> None:
        assert merge(["$24", "4.6"], "Body text") == "$24\n4.6\n\nBody text"

    def test_no_facts_returns_text_unchanged(self) -> None:
        assert merge([], "Body text") == "Body text"
        assert merge(None, "Body text") == "Body text"

    def test_no_deduplication_or_formatting(self) -> None:
        assert merge(["  $24 ", "$24"], "$24") == "  $24 \n$24\n\n$24"

    def test_empty_visible_text(self) -> None:
        assert merge(["a"], "") == "a\n\n"


class TestMergeWithStats:
    def test_sizes(self) -> None:
        result = merge_with_stats(["a", "b"], "c")
        assert result.text == "a\nb\n\nc"
        assert result.fact_count == 2
        assert result.original_length == 1
        assert result.merged_length == len("a\nb\n\nc")

    def test_no_facts(self) -> None:
        result = merge_with_stats(None, "text")
        assert result.fact_count == 0
        assert result.merged_length == result.original_length == 4
