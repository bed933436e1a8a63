import os
import tempfile
import unittest

from gpevim.db import SqlRecordStore
from gpevim.errors import BackendUnavailableError


class SqlRecordStoreTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store logic.
    """

    def setUp(self):
        self.db = SqlRecordStore("sqlite+pysqlite:///:memory:")
        self.db.initialize("admin", "gpevim2025")

    def test_insert_get_and_list_publication(self):
        record = self.db.insert_publication(
            {
                "title": "Título",
                "author": "Autor",
                "image_url": "https://example.test/a.webp",
                "publication_url": "https://example.test/pub",
            }
        )
        self.assertIsInstance(record.id, int)
        self.assertIsNotNone(record.created_at.tzinfo)
        self.assertIsNone(record.description)

        fetched = self.db.get_publication(record.id)
        self.assertEqual(fetched.title, "Título")
        self.assertEqual([item.id for item in self.db.list_publications()], [record.id])

    def test_update_stamps_updated_at(self):
        record = self.db.insert_publication(
            {"title": "a", "author": "b", "image_url": "c", "publication_url": "d"}
        )
        self.assertIsNone(record.updated_at)

        updated = self.db.update_publication(
            record.id,
            {"title": "z", "author": "b", "image_url": "c", "publication_url": "d"},
        )
        self.assertEqual(updated.title, "z")
        self.assertIsNotNone(updated.updated_at)
        self.assertIsNone(self.db.update_publication(record.id + 100, {"title": "x"}))

    def test_missing_rows_are_none_not_errors(self):
        self.assertIsNone(self.db.get_publication(42))
        self.assertIsNone(self.db.get_member(42))
        self.assertFalse(self.db.delete_publication(42))
        self.assertFalse(self.db.delete_member(42))

    def test_delete_member(self):
        record = self.db.insert_member(
            {"name": "Ana", "role": "Bolsista", "image_url": "x", "category": "colaboradores"}
        )
        self.assertTrue(self.db.delete_member(record.id))
        self.assertFalse(self.db.delete_member(record.id))
        self.assertEqual(self.db.list_members(), [])

    def test_members_listed_by_category_rank(self):
        for name, category in (
            ("Zoe", "iniciacao_cientifica"),
            ("Beto", "colaboradores"),
            ("Ana", "coordenadores"),
            ("Caio", "visitantes"),
        ):
            self.db.insert_member(
                {"name": name, "role": "r", "image_url": "x", "category": category}
            )
        names = [member.name for member in self.db.list_members()]
        self.assertEqual(names, ["Ana", "Beto", "Zoe", "Caio"])

    def test_admin_seed_is_idempotent(self):
        self.db.initialize("admin", "another-password")
        self.assertTrue(self.db.verify_admin("admin", "gpevim2025"))
        self.assertFalse(self.db.verify_admin("admin", "another-password"))
        self.assertFalse(self.db.verify_admin("nobody", "gpevim2025"))

    def test_schema_errors_surface_as_unavailable(self):
        store = SqlRecordStore("sqlite+pysqlite:///:memory:")
        # Tables were never created.
        with self.assertRaises(BackendUnavailableError):
            store.list_publications()

    def test_unreachable_database_surfaces_as_unavailable(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            url = "sqlite:///" + os.path.join(tmp_dir, "missing", "site.db")
            store = SqlRecordStore(url)
            with self.assertRaises(BackendUnavailableError):
                store.initialize("admin", "gpevim2025")
            with self.assertRaises(BackendUnavailableError):
                store.insert_member({"name": "Ana"})


if __name__ == "__main__":
    unittest.main()
