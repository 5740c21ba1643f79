"""Tests for the hard message length limit."""

import pytest

from cogs.chatter.config import MAX_MESSAGE_LENGTH
from cogs.chatter.services.length import enforce_length, split_by_length


class TestEnforceLength:

    def test_chunks_within_limit_pass_through(self):
        chunks = ["hello", "x" * MAX_MESSAGE_LENGTH]
        assert enforce_length(chunks) == chunks

    def test_one_over_limit_splits_in_two(self):
        result = enforce_length(["x" * 2001])

        assert [len(chunk) for chunk in result] == [2000, 1]

    def test_concatenation_is_preserved(self):
        chunks = ["short one", "y" * 4500, "tail"]

        result = enforce_length(chunks)

        assert "".join(result) == "".join(chunks)
        assert all(len(chunk) <= MAX_MESSAGE_LENGTH for chunk in result)

    def test_order_is_preserved(self):
        chunks = ["first", "a" * 2500, "last"]

        result = enforce_length(chunks)

        assert result[0] == "first"
        assert result[-1] == "last"
        assert result[1:3] == ["a" * 2000, "a" * 500]

    def test_idempotent(self):
        once = enforce_length(["z" * 5000, "ok"])
        assert enforce_length(once) == once

    def test_empty_chunks_are_dropped(self):
        assert enforce_length(["", "text", ""]) == ["text"]
        assert enforce_length([]) == []

    def test_custom_limit(self):
        assert enforce_length(["abcdefg"], limit=3) == ["abc", "def", "g"]

    def test_non_positive_limit_rejected(self):
        with pytest.raises(ValueError):
            enforce_length(["abc"], limit=0)


class TestSplitByLength:

    def test_exact_multiple(self):
        assert split_by_length("abcdef", 3) == ["abc", "def"]

    def test_empty_text(self):
        assert split_by_length("", 3) == []
