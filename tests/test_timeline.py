"""
Tests for alignment timeline compression.
"""

from fleet.aggregate import AlignmentEntry
from fleet.timeline import create_alignment_timeline


def _entries(*pairs):
    return [AlignmentEntry(date=d, alignment_status=s) for d, s in pairs]


class TestAlignmentTimeline:
    def test_merges_consecutive_periods(self):
        entries = _entries(("1 July", "Alligned"), ("2 July", "Alligned"), ("3 July", "Misalligned"))
        assert create_alignment_timeline(entries) == "Alligned (1 July to 2 July) → Misalligned (3 July)"

    def test_sorts_before_compressing(self):
        entries = _entries(("3 July", "Misalligned"), ("1 July", "Alligned"), ("2 July", "Alligned"))
        assert create_alignment_timeline(entries) == "Alligned (1 July to 2 July) → Misalligned (3 July)"

    def test_day_ordering_uses_padded_key(self):
        entries = _entries(("10 July", "Misalligned"), ("9 July", "Alligned"))
        assert create_alignment_timeline(entries) == "Alligned (9 July) → Misalligned (10 July)"

    def test_single_entry(self):
        assert create_alignment_timeline(_entries(("5 July", "Alligned"))) == "Alligned (5 July)"

    def test_status_flapping(self):
        entries = _entries(
            ("1 July", "Alligned"),
            ("2 July", "Misalligned"),
            ("3 July", "Alligned"),
        )
        assert create_alignment_timeline(entries) == "Alligned (1 July) → Misalligned (2 July) → Alligned (3 July)"

    def test_skips_placeholder_statuses(self):
        entries = _entries(("1 July", "Alligned"), ("2 July", "NA"), ("3 July", "Alligned"))
        assert create_alignment_timeline(entries) == "Alligned (1 July to 3 July)"

    def test_no_usable_statuses(self):
        entries = _entries(("1 July", "Unknown"), ("2 July", "NA"), ("3 July", ""))
        assert create_alignment_timeline(entries) == "No alignment changes"

    def test_empty_input(self):
        assert create_alignment_timeline([]) == "No alignment data"

    def test_repeatable(self):
        entries = _entries(("2 July", "Misalligned"), ("1 July", "Alligned"))
        assert create_alignment_timeline(entries) == create_alignment_timeline(entries)

    def test_input_not_mutated(self):
        entries = _entries(("2 July", "Misalligned"), ("1 July", "Alligned"))
        create_alignment_timeline(entries)
        assert entries[0].date == "2 July"
