import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from gpevim.errors import StorageError
from gpevim.storage import (
    InMemoryImageStore,
    LocalDirImageStore,
    S3ImageStore,
    build_object_path,
)


class BuildObjectPathTests(unittest.TestCase):
    def test_sanitizes_stem_and_uses_webp(self):
        path = build_object_path("Foto Ana (2024).final.JPG", timestamp_ms=1700000000000)
        self.assertEqual(path, "public/1700000000000_Foto_Ana__2024__final.webp")

    def test_empty_hint(self):
        self.assertEqual(build_object_path("", timestamp_ms=5), "public/5_image.webp")


@patch("gpevim.storage.time.time", return_value=1700000000.0)
class InsertOnlyTests(unittest.TestCase):
    def test_in_memory_store_refuses_overwrite(self, _time):
        store = InMemoryImageStore()
        stored = store.put_image("members-images", b"one", "ana.png")
        self.assertEqual(
            stored.url,
            "https://example.test/storage/members-images/public/1700000000000_ana.webp",
        )
        self.assertEqual(stored.filename, "1700000000000_ana.webp")
        with self.assertRaises(StorageError):
            store.put_image("members-images", b"two", "ana.png")
        self.assertEqual(
            store.stored_objects[("members-images", stored.path)], b"one"
        )

    def test_local_dir_store_writes_and_refuses_overwrite(self, _time):
        with tempfile.TemporaryDirectory() as tmp_dir:
            store = LocalDirImageStore(root_dir=tmp_dir)
            stored = store.put_image("publications-images", b"data", "capa.png")
            self.assertEqual(
                stored.url, "/uploads/publications-images/public/1700000000000_capa.webp"
            )
            written = os.path.join(
                tmp_dir, "publications-images", "public", "1700000000000_capa.webp"
            )
            with open(written, "rb") as f:
                self.assertEqual(f.read(), b"data")

            with self.assertRaises(StorageError):
                store.put_image("publications-images", b"other", "capa.png")
            with open(written, "rb") as f:
                self.assertEqual(f.read(), b"data")


class S3ImageStoreTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("gpevim.storage.boto3.client")
        self.client = MagicMock()
        patcher.start().return_value = self.client
        self.addCleanup(patcher.stop)

    def _store(self, public_base_url=None):
        return S3ImageStore(
            endpoint="https://project.storage.example/storage/v1/s3",
            region="sa-east-1",
            access_key_id="key",
            secret_access_key="secret",
            public_base_url=public_base_url,
        )

    def test_put_image_uploads_insert_only_and_returns_public_url(self):
        store = self._store("https://project.example/storage/v1/object/public")
        stored = store.put_image("members-images", b"webp-bytes", "ana.png")

        kwargs = self.client.put_object.call_args.kwargs
        self.assertEqual(kwargs["Bucket"], "members-images")
        self.assertEqual(kwargs["Key"], stored.path)
        self.assertEqual(kwargs["ContentType"], "image/webp")
        self.assertEqual(kwargs["IfNoneMatch"], "*")
        self.assertEqual(
            stored.url,
            f"https://project.example/storage/v1/object/public/members-images/{stored.path}",
        )

    def test_missing_public_base_url_is_logged(self):
        with self.assertLogs("gpevim.storage", level="WARNING") as logs:
            store = self._store()
        self.assertIn("STORAGE_PUBLIC_BASE_URL", logs.output[0])
        self.assertEqual(
            store.public_url("members-images", "public/1_a.webp"),
            "https://project.storage.example/storage/v1/s3/members-images/public/1_a.webp",
        )

    def test_existing_object_is_an_error(self):
        self.client.put_object.side_effect = ClientError(
            {"Error": {"Code": "PreconditionFailed", "Message": "exists"}}, "PutObject"
        )
        with self.assertRaises(StorageError):
            self._store().put_image("members-images", b"x", "ana.png")

    def test_write_failure_is_an_error(self):
        self.client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "no"}}, "PutObject"
        )
        with self.assertRaises(StorageError):
            self._store().put_image("members-images", b"x", "ana.png")


if __name__ == "__main__":
    unittest.main()
