"""
findexec Placeholder Tests

Coverage:
- Literal, left-to-right, non-overlapping replacement
- Length law: len(T) - 2n + n*len(F)
- No re-substitution of markers coming from the file path
- Templates are never mutated
"""

import pytest

from findexec.placeholders import (
    count_placeholders,
    resolve_command,
    substitute,
)


class TestSubstitute:
    """Single-template substitution."""

    def test_no_placeholder_returns_equal_copy(self):
        assert substitute("--verbose", "a.txt") == "--verbose"

    def test_single_placeholder(self):
        assert substitute("{}", "a.txt") == "a.txt"

    def test_embedded_placeholders(self):
        assert substitute("{}.out", "a.txt") == "a.txt.out"
        assert substitute("x{}y{}z", "F") == "xFyFz"

    def test_non_overlapping_left_to_right(self):
        assert substitute("{{}}", "F") == "{F}"
        assert substitute("{}}", "F") == "F}"
        assert substitute("{{}", "F") == "{F"

    def test_fill_containing_marker_is_not_rescanned(self):
        result = substitute("x{}y", "a{}b")
        assert result == "xa{}by"
        assert count_placeholders(result) == 1

    def test_empty_fill(self):
        assert substitute("pre{}post", "") == "prepost"

    @pytest.mark.parametrize("template", [
        "", "plain", "{}", "{}{}", "a{}b{}c{}", "{{}}", "}{", "{}.{}.bak",
    ])
    @pytest.mark.parametrize("fill", ["", "a.txt", "dir/sub file", "{}", "x{}{}y"])
    def test_length_law(self, template, fill):
        n = count_placeholders(template)
        result = substitute(template, fill)
        assert len(result) == len(template) - 2 * n + n * len(fill)

    @pytest.mark.parametrize("template", ["{}", "a{}b{}c", "plain", "{{}}"])
    @pytest.mark.parametrize("fill", ["{}", "x{}{}y", "none"])
    def test_rescan_finds_only_markers_from_fill(self, template, fill):
        n = count_placeholders(template)
        result = substitute(template, fill)
        # None of these fills can join with template text into a new marker.
        assert count_placeholders(result) == n * count_placeholders(fill)


class TestResolveCommand:
    """Whole-stage resolution."""

    def test_every_token_resolved(self):
        assert resolve_command(("cp", "{}", "{}.bak"), "a.txt") == ["cp", "a.txt", "a.txt.bak"]

    def test_returns_fresh_list(self):
        template = ("echo", "{}")
        first = resolve_command(template, "a.txt")
        second = resolve_command(template, "b.txt")
        assert first == ["echo", "a.txt"]
        assert second == ["echo", "b.txt"]
        assert template == ("echo", "{}")
        assert first is not second
