"""Unit tests for previews and deletion of unknown files."""
import pytest

from fileguard.core.errors import PathTraversalRejected
from fileguard.core.files import delete_files, format_size, guess_mime_type, read_preview

from tests.conftest import write_tree


class TestFormatSize:
    @pytest.mark.parametrize(
        "size, expected",
        [(0, "0 B"), (512, "512 B"), (1024, "1 KB"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5 MB")],
    )
    def test_units(self, size, expected):
        assert format_size(size) == expected

    def test_php_is_text(self):
        assert guess_mime_type("wp-admin/shell.php") == "text/x-php"


class TestDeleteFiles:
    async def test_deletes_listed_files(self, site):
        write_tree(site, {"evil.php": b"<?php", "wp-admin/drop.php": b"<?php"})
        result = await delete_files(str(site), ["evil.php", "wp-admin/drop.php"])
        assert result.deleted == ["evil.php", "wp-admin/drop.php"]
        assert result.failed == []
        assert not (site / "evil.php").exists()
        assert (site / "wp-admin").is_dir()

    async def test_traversal_is_refused(self, site, tmp_path):
        outside = tmp_path / "passwd"
        outside.write_text("root:x:0:0")
        result = await delete_files(str(site), ["../passwd", "../../etc/passwd"])
        assert result.deleted == []
        assert result.failed == ["../passwd", "../../etc/passwd"]
        assert "outside" in result.errors["../passwd"]
        assert outside.exists()

    async def test_partial_batch(self, site):
        write_tree(site, {"a.php": b"a", "c.php": b"c"})
        (site / "dir").mkdir()
        result = await delete_files(str(site), ["a.php", "missing.php", "dir", "c.php"])
        assert result.deleted == ["a.php", "c.php"]
        assert result.failed == ["missing.php", "dir"]
        assert (site / "dir").is_dir()

    async def test_symlink_escaping_root_is_refused(self, site, tmp_path):
        secret = tmp_path / "secret.txt"
        secret.write_text("keep")
        (site / "link.txt").symlink_to(secret)
        result = await delete_files(str(site), ["link.txt"])
        assert result.failed == ["link.txt"]
        assert secret.exists()

    async def test_symlink_is_unlinked_not_its_target(self, site):
        write_tree(site, {"wp-includes/load.php": b"<?php // core"})
        (site / "alias.php").symlink_to(site / "wp-includes/load.php")

        result = await delete_files(str(site), ["alias.php"])

        assert result.deleted == ["alias.php"]
        assert not (site / "alias.php").is_symlink()
        assert (site / "wp-includes/load.php").read_bytes() == b"<?php // core"

    async def test_entry_under_outside_directory_is_refused(self, site, tmp_path):
        write_tree(site, {"index.php": b"<?php"})
        outside = tmp_path / "elsewhere"
        outside.mkdir()
        (outside / "back.php").symlink_to(site / "index.php")
        (site / "d").symlink_to(outside)

        result = await delete_files(str(site), ["d/back.php"])

        assert result.failed == ["d/back.php"]
        assert (outside / "back.php").is_symlink()
        assert (site / "index.php").exists()


class TestReadPreview:
    async def test_text_content(self, site):
        write_tree(site, {"notes.txt": "héllo\n".encode()})
        preview = await read_preview(str(site), "notes.txt")
        assert preview.content == "héllo\n"
        assert not preview.is_binary
        assert preview.mime_type == "text/plain"

    async def test_latin1_fallback(self, site):
        write_tree(site, {"old.txt": b"caf\xe9"})
        preview = await read_preview(str(site), "old.txt")
        assert preview.content == "café"

    async def test_binary_has_no_content(self, site):
        write_tree(site, {"blob.dat": b"\x7fELF\x00\x00\x01"})
        preview = await read_preview(str(site), "blob.dat")
        assert preview.is_binary
        assert preview.content is None

    async def test_image_is_flagged(self, site):
        write_tree(site, {"pic.png": b"\x89PNG\r\n\x1a\n"})
        preview = await read_preview(str(site), "pic.png")
        assert preview.is_image
        assert preview.content is None

    async def test_too_large(self, site):
        write_tree(site, {"big.php": b"x" * 200})
        preview = await read_preview(str(site), "big.php", max_bytes=100)
        assert preview.too_large
        assert preview.content is None
        assert preview.size == 200

    async def test_traversal_rejected(self, site):
        with pytest.raises(PathTraversalRejected):
            await read_preview(str(site), "../../etc/passwd")

    async def test_missing_file(self, site):
        with pytest.raises(FileNotFoundError):
            await read_preview(str(site), "nope.php")
