import threading
import time
import unittest
from unittest.mock import patch

from gpevim.config import Settings
from gpevim.db import InMemoryRecordStore
from gpevim.dependencies import get_image_store, get_record_store, reset_dependencies
from gpevim.storage import InMemoryImageStore


class DependencySingletonTests(unittest.TestCase):
    def setUp(self):
        reset_dependencies()
        patcher = patch(
            "gpevim.dependencies.get_settings",
            return_value=Settings(use_in_memory_backends=True),
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(reset_dependencies)

    def test_records_persist_across_calls_until_reset(self):
        store = get_record_store()
        self.assertIsInstance(store, InMemoryRecordStore)
        store.insert_publication(
            {"title": "t", "author": "a", "image_url": "i", "publication_url": "p"}
        )
        self.assertIs(get_record_store(), store)
        self.assertEqual(len(get_record_store().list_publications()), 1)

        store.reset()
        self.assertEqual(store.list_publications(), [])

        reset_dependencies()
        self.assertIsNot(get_record_store(), store)

    def test_concurrent_first_calls_share_one_store(self):
        def slow_store():
            time.sleep(0.05)
            return InMemoryRecordStore()

        thread_count = 8
        barrier = threading.Barrier(thread_count)
        record_stores = []
        image_stores = []

        def first_request():
            barrier.wait()
            record_stores.append(get_record_store())
            image_stores.append(get_image_store())

        with patch("gpevim.dependencies.InMemoryRecordStore", side_effect=slow_store):
            threads = [threading.Thread(target=first_request) for _ in range(thread_count)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        self.assertEqual(len(record_stores), thread_count)
        self.assertEqual(len({id(store) for store in record_stores}), 1)
        self.assertEqual(len({id(store) for store in image_stores}), 1)
        self.assertIsInstance(image_stores[0], InMemoryImageStore)


if __name__ == "__main__":
    unittest.main()
