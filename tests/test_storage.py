"""
Tests for object storage and question store backends.
"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

from examtutor.exceptions import ObjectNotFoundError, StorageError
from examtutor.schema import AnswerKeyLink
from examtutor.storage import (
    InMemoryObjectStorage,
    InMemoryQuestionStore,
    JsonQuestionStore,
    LocalObjectStorage,
    fetch_url,
)


class QuestionStoreContract:
    """Behaviour every question store shares. Mixed into concrete test cases."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        super().setUp()
        self.store = self.make_store()

    def test_upsert_then_lookup(self):
        self.store.upsert("doc", "Q1", [1, 2], "text", "ref-1")
        record = self.store.lookup("doc", "question 1")
        self.assertIsNotNone(record)
        self.assertEqual(record.question_number, "1")
        self.assertEqual(record.page_numbers, [1, 2])
        self.assertEqual(record.image_ref, "ref-1")

    def test_upsert_replaces_whole_record(self):
        self.store.upsert("doc", "1", [1, 2], "old text", "ref-old")
        self.store.upsert("doc", "01", [3], "new text", "ref-new")
        record = self.store.lookup("doc", "1")
        self.assertEqual(record.extracted_text, "new text")
        self.assertEqual(record.page_numbers, [3])
        self.assertEqual(record.image_ref, "ref-new")
        self.assertEqual(len(self.store.list_questions("doc")), 1)

    def test_lookup_miss(self):
        self.assertIsNone(self.store.lookup("doc", "9"))
        self.assertIsNone(self.store.lookup("other", "1"))

    def test_list_orders_by_first_page(self):
        self.store.upsert("doc", "3", [4], "", "r3")
        self.store.upsert("doc", "1", [1], "", "r1")
        self.store.upsert("doc", "2", [2, 3], "", "r2")
        self.assertEqual(
            [r.question_number for r in self.store.list_questions("doc")], ["1", "2", "3"]
        )

    def test_documents_are_isolated(self):
        self.store.upsert("a", "1", [1], "a", "ra")
        self.store.upsert("b", "1", [1], "b", "rb")
        self.assertEqual(self.store.lookup("a", "1").extracted_text, "a")
        self.assertEqual(self.store.lookup("b", "1").extracted_text, "b")

    def test_answer_key_and_page_refs(self):
        self.assertIsNone(self.store.get_answer_key("doc"))
        self.store.link_answer_key("doc", "doc_ms")
        self.store.save_page_refs("doc", ["p1", "p2"])
        self.assertEqual(self.store.get_answer_key("doc"), "doc_ms")
        self.assertEqual(self.store.page_refs("doc"), ["p1", "p2"])
        self.assertEqual(self.store.page_refs("unknown"), [])

    def test_relinking_replaces_the_answer_key(self):
        first = self.store.link_answer_key("doc", "doc_ms")
        second = self.store.link_answer_key("doc", "doc_ms_v2")
        self.assertIsInstance(first, AnswerKeyLink)
        self.assertEqual(first.answer_key_document_id, "doc_ms")
        self.assertEqual(second.document_id, "doc")
        self.assertEqual(self.store.get_answer_key("doc"), "doc_ms_v2")

    def test_delete_document(self):
        self.store.upsert("doc", "1", [1], "", "r")
        self.store.link_answer_key("doc", "doc_ms")
        self.store.delete_document("doc")
        self.assertEqual(self.store.list_questions("doc"), [])
        self.assertIsNone(self.store.get_answer_key("doc"))


class TestInMemoryQuestionStore(QuestionStoreContract, unittest.TestCase):
    def make_store(self):
        return InMemoryQuestionStore()


class TestJsonQuestionStore(QuestionStoreContract, unittest.TestCase):
    def make_store(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        return JsonQuestionStore(self.temp_dir.name)

    def test_records_survive_a_new_instance(self):
        self.store.upsert("paper/2023 p1", "2a", [3], "text", "ref")
        reopened = JsonQuestionStore(self.temp_dir.name)
        self.assertEqual(reopened.lookup("paper/2023 p1", "2A").image_ref, "ref")

    def test_answer_key_link_survives_a_new_instance(self):
        self.store.link_answer_key("doc", "doc_ms")
        reopened = JsonQuestionStore(self.temp_dir.name)
        self.assertEqual(reopened.get_answer_key("doc"), "doc_ms")

    def test_corrupt_file_raises_storage_error(self):
        Path(self.temp_dir.name, "doc.json").write_text("{not json", encoding="utf-8")
        with self.assertRaises(StorageError):
            self.store.lookup("doc", "1")


class TestObjectStorage(unittest.TestCase):
    """In-memory and filesystem object storage."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)

    def test_memory_put_get_and_ref(self):
        storage = InMemoryObjectStorage()
        stored = storage.put("doc/question_1.jpg", b"data")
        self.assertEqual(stored.ref, "memory://doc/question_1.jpg")
        self.assertEqual(storage.get_ref(stored.ref), b"data")
        storage.put("doc/question_1.jpg", b"new")
        self.assertEqual(storage.get("doc/question_1.jpg"), b"new")

    def test_memory_missing_key(self):
        with self.assertRaises(ObjectNotFoundError):
            InMemoryObjectStorage().get("missing")

    def test_local_put_get_and_ref(self):
        storage = LocalObjectStorage(self.temp_dir.name)
        stored = storage.put("my doc/question_1.jpg", b"data")
        self.assertTrue(stored.ref.startswith("file://"))
        self.assertEqual(storage.key_for_ref(stored.ref), "my doc/question_1.jpg")
        self.assertEqual(storage.get_ref(stored.ref), b"data")

    def test_local_missing_key(self):
        storage = LocalObjectStorage(self.temp_dir.name)
        with self.assertRaises(ObjectNotFoundError):
            storage.get("doc/question_9.jpg")

    def test_local_rejects_escaping_keys(self):
        storage = LocalObjectStorage(self.temp_dir.name)
        with self.assertRaises(StorageError):
            storage.put("../outside.jpg", b"data")

    def test_foreign_ref_that_is_not_a_url(self):
        with self.assertRaises(ObjectNotFoundError):
            InMemoryObjectStorage().get_ref("s3://bucket/key.jpg")


class TestFetchUrl(unittest.TestCase):
    """Download of http(s) image references."""

    @patch("examtutor.storage.http.requests.get")
    def test_success(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200, ok=True, content=b"img")
        self.assertEqual(fetch_url("https://cdn.example.com/q1.jpg", timeout=5), b"img")
        mock_get.assert_called_once_with("https://cdn.example.com/q1.jpg", timeout=5)

    @patch("examtutor.storage.http.requests.get")
    def test_not_found(self, mock_get):
        mock_get.return_value = MagicMock(status_code=404, ok=False)
        with self.assertRaises(ObjectNotFoundError):
            fetch_url("https://cdn.example.com/missing.jpg")

    @patch("examtutor.storage.http.requests.get")
    def test_network_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("unreachable")
        with self.assertRaises(StorageError):
            fetch_url("https://cdn.example.com/q1.jpg")


if __name__ == "__main__":
    unittest.main()
