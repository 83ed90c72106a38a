"""Unit tests for manifest classification."""
import os

from fileguard.core.comparator import IntegrityComparator
from fileguard.core.exclusions import ExclusionSet
from fileguard.core.scanner import TreeScanner
from fileguard.core.tree import LocalFileTree
from fileguard.schema.classification import Classification
from fileguard.schema.records import Manifest

from tests.conftest import LOCALE, VERSION, md5, write_tree

EXCLUSIONS = ExclusionSet.build(["wp-config.php"], ["wp-content"])


def _records(root):
    return {r.relative_path: r for r in TreeScanner(LocalFileTree(root)).scan(ExclusionSet())}


def _manifest(checksums):
    return Manifest(version=VERSION, locale=LOCALE, checksums=checksums)


class TestIntegrityComparator:
    def test_matching_checksum_is_intact(self, site):
        write_tree(site, {"index.php": b"<?php // core"})
        record = _records(site)["index.php"]
        result = IntegrityComparator().classify(record, _manifest({"index.php": md5(b"<?php // core")}), EXCLUSIONS)
        assert result.classification is Classification.intact
        assert record.checksum == md5(b"<?php // core")

    def test_checksum_comparison_ignores_case(self, site):
        write_tree(site, {"index.php": b"x"})
        record = _records(site)["index.php"]
        result = IntegrityComparator().classify(record, _manifest({"index.php": md5(b"x").upper()}), EXCLUSIONS)
        assert result.classification is Classification.intact

    def test_different_content_is_modified(self, site):
        write_tree(site, {"index.php": b"<?php eval($_GET['x']);"})
        record = _records(site)["index.php"]
        result = IntegrityComparator().classify(record, _manifest({"index.php": "abc123"}), EXCLUSIONS)
        assert result.classification is Classification.modified
        assert result.expected_checksum == "abc123"
        assert result.actual_checksum == md5(b"<?php eval($_GET['x']);")
        assert result.path == "index.php"

    def test_mtime_only_change_is_intact(self, site):
        write_tree(site, {"index.php": b"same"})
        os.utime(site / "index.php", (1, 1))
        record = _records(site)["index.php"]
        result = IntegrityComparator().classify(record, _manifest({"index.php": md5(b"same")}), EXCLUSIONS)
        assert result.classification is Classification.intact

    def test_absent_and_not_excluded_is_unknown(self, site):
        write_tree(site, {"shell.php": b"bad"})
        calls = []
        comparator = IntegrityComparator(hasher=lambda r: calls.append(r) or "")
        result = comparator.classify(_records(site)["shell.php"], _manifest({"index.php": "abc"}), EXCLUSIONS)
        assert result.classification is Classification.unknown
        assert calls == []  # no hashing for files outside the manifest

    def test_absent_but_excluded_is_intact(self, site):
        write_tree(site, {"wp-config.php": b"<?php define('DB_NAME', 'x');"})
        result = IntegrityComparator().classify(
            _records(site)["wp-config.php"], _manifest({"index.php": "abc"}), EXCLUSIONS
        )
        assert result.classification is Classification.intact

    def test_manifest_entry_wins_over_exclusion(self, site):
        write_tree(site, {"wp-content/index.php": b"changed"})
        result = IntegrityComparator().classify(
            _records(site)["wp-content/index.php"],
            _manifest({"wp-content/index.php": md5(b"<?php // Silence is golden.")}),
            EXCLUSIONS,
        )
        assert result.classification is Classification.modified

    def test_classification_is_deterministic(self, site):
        write_tree(site, {"a.php": b"1", "b.php": b"2", "c.php": b"3"})
        manifest = _manifest({"a.php": md5(b"1"), "b.php": md5(b"changed")})
        first = {p: IntegrityComparator().classify(r, manifest, EXCLUSIONS).classification for p, r in _records(site).items()}
        second = {p: IntegrityComparator().classify(r, manifest, EXCLUSIONS).classification for p, r in _records(site).items()}
        assert first == second == {
            "a.php": Classification.intact,
            "b.php": Classification.modified,
            "c.php": Classification.unknown,
        }
