from unittest.mock import patch

import pytest

from app.documents.errors import BlobNotFound
from app.services.blob_store import LocalBlobStore


@pytest.fixture
def store(tmp_path):
    return LocalBlobStore(str(tmp_path), "/admin/files")


class TestKeys:
    @pytest.mark.parametrize("bad", ["", "/etc/passwd", "../secret", "a//b", "a/./b", "a/../../b"])
    def test_rejects_unsafe_keys(self, store, bad):
        with pytest.raises(ValueError):
            store.normalize_key(bad)

    def test_backslashes_normalised(self, store):
        assert store.normalize_key("signed-documents\\invoice\\x.pdf") == "signed-documents/invoice/x.pdf"

    def test_url_round_trip(self, store):
        url = store.url("admin/signature/default.png")
        assert url == "/admin/files/admin/signature/default.png"
        assert store.key_from_url(url) == "admin/signature/default.png"
        assert store.key_from_url("https://elsewhere/x.png") is None


class TestOperations:
    def test_upload_overwrites(self, store, tmp_path):
        store.upload("a/b.txt", b"one")
        url = store.upload("a/b.txt", b"two")

        assert url == "/admin/files/a/b.txt"
        assert store.read("a/b.txt") == b"two"
        assert not (tmp_path / "a" / "b.txt.part").exists()

    def test_failed_write_leaves_no_temp_file(self, store, tmp_path):
        with patch("app.services.blob_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.upload("a/b.txt", b"data")

        assert not (tmp_path / "a" / "b.txt.part").exists()
        assert not store.exists("a/b.txt")

    def test_delete(self, store):
        store.upload("a/b.txt", b"one")
        store.delete("a/b.txt")
        store.delete("a/b.txt")
        assert not store.exists("a/b.txt")

    def test_missing_blob(self, store):
        assert not store.exists("nothing/here.pdf")
        with pytest.raises(BlobNotFound):
            store.read("nothing/here.pdf")
        with pytest.raises(BlobNotFound):
            store.download("nothing/here.pdf")

    def test_exists_is_false_for_bad_key(self, store):
        assert store.exists("../../etc/passwd") is False
