"""
Tests for the Diff Hunk Walker.

These tests verify that new-file line numbers map to the GitHub
review-comment position of the matching diff line.
"""

import pytest

from reviewguard.diff.hunks import find_position, line_for_position, walk_patch


MULTI_HUNK_PATCH = """@@ -2,6 +2,9 @@ def setup():
 line2
 line3
 line4
+added5
+added6
+added7
 line8
 line9
 line10
@@ -20,5 +18,4 @@ def teardown():
 line18
-removed_a
-removed_b
 line19
+added20
 line21
"""


class TestFindPosition:
    """Line -> position mapping."""

    def test_single_added_line(self):
        patch = "@@ -1,2 +1,3 @@\n a\n+b\n c\n"
        assert find_position(patch, 2) == 3

    def test_context_lines_are_commentable(self):
        patch = "@@ -1,2 +1,3 @@\n a\n+b\n c\n"
        assert find_position(patch, 1) == 2
        assert find_position(patch, 3) == 4

    def test_hunk_start_offsets_new_line(self):
        patch = "@@ -10,3 +40,4 @@ class Foo:\n x\n+y\n z\n"
        assert find_position(patch, 41) == 3
        assert find_position(patch, 2) is None

    def test_second_hunk_counted_from_its_own_header(self):
        """Line 20 lives in hunk 2; positions keep counting across hunks."""
        assert find_position(MULTI_HUNK_PATCH, 20) == 16

    def test_first_hunk_lines(self):
        assert find_position(MULTI_HUNK_PATCH, 5) == 5
        assert find_position(MULTI_HUNK_PATCH, 6) == 6
        assert find_position(MULTI_HUNK_PATCH, 7) == 7

    def test_removed_lines_do_not_advance(self):
        assert find_position(MULTI_HUNK_PATCH, 19) == 15

    def test_deleted_line_not_found(self):
        """Old line 3 was removed; the new file only has two lines."""
        patch = "@@ -1,3 +1,2 @@\n a\n b\n-c\n"
        assert find_position(patch, 3) is None

    def test_line_between_hunks_not_found(self):
        assert find_position(MULTI_HUNK_PATCH, 14) is None

    def test_missing_patch(self):
        assert find_position(None, 1) is None
        assert find_position("", 1) is None

    def test_non_positive_target(self):
        patch = "@@ -1,1 +1,2 @@\n a\n+b\n"
        assert find_position(patch, 0) is None
        assert find_position(patch, -1) is None

    def test_file_headers_are_not_positions(self):
        patch = "--- a/app.py\n+++ b/app.py\n@@ -1,2 +1,3 @@\n a\n+b\n c\n"
        assert find_position(patch, 2) == 3

    def test_removed_sql_comment_inside_hunk(self):
        """'-- note' removed shows up as '--- note' and is not a file header."""
        patch = "@@ -1,2 +1,1 @@\n--- note\n keep\n"
        assert find_position(patch, 1) == 3

    def test_added_line_starting_with_plus_plus(self):
        patch = "@@ -1,1 +1,2 @@\n a\n+++counter\n"
        assert find_position(patch, 2) == 3

    def test_crlf_patch(self):
        patch = "@@ -1,1 +1,2 @@\r\n a\r\n+b\r\n"
        assert find_position(patch, 2) == 3

    def test_blank_line_is_context(self):
        patch = "@@ -1,3 +1,3 @@\n a\n\n c\n"
        assert find_position(patch, 2) == 3
        assert find_position(patch, 3) == 4

    def test_no_newline_marker(self):
        patch = (
            "@@ -1 +1 @@\n"
            "-old\n"
            "\\ No newline at end of file\n"
            "+new\n"
            "\\ No newline at end of file\n"
        )
        assert find_position(patch, 1) == 4

    def test_git_preamble_is_not_commentable(self):
        patch = (
            "diff --git a/app.py b/app.py\n"
            "index 1111111..2222222 100644\n"
            "--- a/app.py\n"
            "+++ b/app.py\n"
            "@@ -1,1 +1,2 @@\n"
            " a\n"
            "+b\n"
        )
        assert find_position(patch, 1) == 4
        assert find_position(patch, 2) == 5


class TestRoundTrip:
    """Walking back from a position reproduces the target line."""

    @pytest.mark.parametrize("target", [5, 6, 7, 20])
    def test_added_lines_round_trip(self, target):
        position = find_position(MULTI_HUNK_PATCH, target)
        assert position is not None
        assert line_for_position(MULTI_HUNK_PATCH, position) == target

    def test_every_commentable_line_round_trips(self):
        for position, new_line in walk_patch(MULTI_HUNK_PATCH):
            if new_line is not None:
                assert find_position(MULTI_HUNK_PATCH, new_line) == position

    def test_positions_strictly_increase(self):
        positions = [position for position, _ in walk_patch(MULTI_HUNK_PATCH)]
        assert positions == list(range(1, len(positions) + 1))

    def test_headers_and_removed_lines_have_no_line(self):
        assert line_for_position(MULTI_HUNK_PATCH, 1) is None
        assert line_for_position(MULTI_HUNK_PATCH, 13) is None
        assert line_for_position(MULTI_HUNK_PATCH, 999) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
