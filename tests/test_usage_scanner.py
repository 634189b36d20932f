"""Tests for textual usage detection in component sources.

Usage matching is a substring heuristic near class-attribute markers. The
prefix false negative is a known limitation and is pinned here on purpose.
"""
import threading
from pathlib import Path

import pytest

from stylesweep.analyzer.usage_scanner import (
    MARKER_WINDOW,
    UsageRecord,
    UsageScanner,
    find_usage,
    name_used_in_text,
)
from stylesweep.errors import OperationCancelled
from stylesweep.utils.logger import WarningLog

FIXTURES_DIR = Path(__file__).parent / 'fixtures'


class TestNameUsedInText:
    """Marker window matching."""

    @pytest.mark.parametrize("snippet", [
        '<div className="card">',
        '<div className={`card ${extra}`}>',
        '<div class="card">',
        '<div :class="{ card: isOpen }">',
        "el.classList.add('card')",
        "clsx('card', { active })",
        "cx('card')",
        'cn("card")',
        "classNames('card')",
        "<div className={styles.card}>",
        "<div className={styles['card']}>",
    ])
    def test_markers(self, snippet):
        assert name_used_in_text("card", snippet), f"'card' should be found in {snippet!r}"

    def test_name_without_marker_is_not_usage(self):
        assert not name_used_in_text("card", "const card = getCard();")

    def test_name_before_marker_is_not_usage(self):
        assert not name_used_in_text("card", 'const card = 1; <div className="other">')

    def test_name_inside_window(self):
        text = 'className="' + "x " * 50 + 'card"'
        assert name_used_in_text("card", text)

    def test_name_outside_window(self):
        text = 'className="' + "x" * (MARKER_WINDOW + 50) + ' card"'
        assert not name_used_in_text("card", text)

    def test_later_occurrence_near_marker_counts(self):
        text = 'const card = 1;\n<div className="card">'
        assert name_used_in_text("card", text)

    def test_prefix_of_longer_class_counts_as_used(self):
        # Known limitation: 'btn' is only defined as a prefix here, yet it is
        # reported as used. Unused classes can hide behind longer names.
        assert name_used_in_text("btn", '<button className="btn-primary">')


class TestUsageScanner:
    """File-level scanning, warnings and cancellation."""

    def test_fixture_components(self):
        records = find_usage(
            ["btn", "btn__icon", "btn--primary", "header", "old-banner", "card-title", "site-footer", "active"],
            FIXTURES_DIR / 'components',
        )
        used = {record.class_name for record in records}

        assert used == {"btn", "btn--primary", "header", "card-title", "site-footer", "active"}

    def test_records_name_the_file(self, tmp_path):
        component = tmp_path / 'Card.jsx'
        component.write_text('<div className="card" />', encoding='utf-8')

        records = UsageScanner().find_usage(["card"], tmp_path)

        assert records == {UsageRecord("card", str(component.resolve()))}

    def test_one_record_per_file(self, tmp_path):
        (tmp_path / 'A.tsx').write_text('<a className="card" />', encoding='utf-8')
        (tmp_path / 'B.vue').write_text('<b class="card"></b>', encoding='utf-8')

        records = find_usage(["card"], tmp_path)

        assert len(records) == 2

    def test_non_component_files_are_ignored(self, tmp_path):
        (tmp_path / 'notes.md').write_text('className="card"', encoding='utf-8')
        (tmp_path / 'node_modules').mkdir()
        (tmp_path / 'node_modules' / 'lib.js').write_text('className="card"', encoding='utf-8')

        assert find_usage(["card"], tmp_path) == set()

    def test_unreadable_and_empty_files_are_warned(self, tmp_path):
        (tmp_path / 'Binary.js').write_bytes(b'\xff\xfe\x00className="card"')
        (tmp_path / 'Empty.tsx').write_text('   \n', encoding='utf-8')
        (tmp_path / 'Good.tsx').write_text('<div className="card" />', encoding='utf-8')

        warnings = WarningLog()
        scanner = UsageScanner(warnings)
        records = scanner.find_usage(["card"], tmp_path)

        assert {r.file for r in records} == {str((tmp_path / 'Good.tsx').resolve())}
        assert scanner.files_scanned == 1
        assert len(warnings.by_category('read')) == 1
        assert len(warnings.by_category('empty')) == 1

    def test_cancellation_at_file_boundary(self, tmp_path):
        (tmp_path / 'A.tsx').write_text('<a className="card" />', encoding='utf-8')
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(OperationCancelled):
            UsageScanner(cancel=cancel).find_usage(["card"], tmp_path)

    def test_progress_callback(self, tmp_path):
        for name in ('A.tsx', 'B.tsx'):
            (tmp_path / name).write_text('<a className="card" />', encoding='utf-8')
        seen = []

        UsageScanner().scan_files(["card"], sorted(tmp_path.iterdir()), on_file=seen.append)

        assert [p.name for p in seen] == ['A.tsx', 'B.tsx']
