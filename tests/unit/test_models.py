"""Tests for the models module."""

import dataclasses
import unittest
from datetime import datetime, timezone

from ssh_kim.key_classifier import KeyType
from ssh_kim.models import (
    DuplicateRule,
    ExportDocument,
    ImportResult,
    KeyRecord,
    RecordCandidate,
)
from tests.test_utility import TestDataHelper


class TestKeyRecord(unittest.TestCase):
    """Test cases for KeyRecord."""

    def test_to_dict(self):
        record = TestDataHelper.create_test_record()

        data = record.to_dict()

        self.assertEqual(data["id"], "test-id")
        self.assertEqual(data["name"], "Test Key")
        self.assertEqual(data["tag"], "work")
        self.assertEqual(data["key"], TestDataHelper.RSA_KEY)
        self.assertEqual(data["key_type"], "RSA")
        self.assertEqual(data["created"], "2023-01-01T00:00:00+00:00")
        self.assertEqual(data["last_modified"], "2023-01-01T00:00:00+00:00")

    def test_from_dict_round_trip(self):
        record = TestDataHelper.create_test_record(tag=None, key_type=KeyType.ED25519)
        self.assertEqual(KeyRecord.from_dict(record.to_dict()), record)

    def test_from_dict_accepts_zulu_timestamps(self):
        """Test timestamps written with a trailing Z are read as UTC."""
        record = KeyRecord.from_dict(TestDataHelper.create_record_dict())

        self.assertEqual(record.created, datetime(2022, 5, 1, 10, 0, tzinfo=timezone.utc))
        self.assertEqual(record.created.tzinfo, timezone.utc)

    def test_from_dict_naive_timestamp_is_utc(self):
        data = TestDataHelper.create_record_dict()
        data["created"] = "2022-05-01T10:00:00"

        record = KeyRecord.from_dict(data)

        self.assertIsNotNone(record.created.tzinfo)

    def test_from_dict_unknown_key_type(self):
        data = TestDataHelper.create_record_dict()
        data["key_type"] = "something-else"
        self.assertIs(KeyRecord.from_dict(data).key_type, KeyType.UNKNOWN)

    def test_from_dict_blank_tag_is_none(self):
        data = TestDataHelper.create_record_dict(tag="")
        self.assertIsNone(KeyRecord.from_dict(data).tag)

    def test_from_dict_missing_field(self):
        data = TestDataHelper.create_record_dict()
        del data["key"]
        with self.assertRaises(KeyError):
            KeyRecord.from_dict(data)

    def test_empty_fields_rejected(self):
        for field_name in ["id", "name", "material"]:
            with self.subTest(field=field_name):
                with self.assertRaises(ValueError):
                    dataclasses.replace(TestDataHelper.create_test_record(), **{field_name: ""})

    def test_frozen(self):
        record = TestDataHelper.create_test_record()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            record.name = "changed"


class TestRecordCandidate(unittest.TestCase):
    """Test cases for RecordCandidate."""

    def test_from_dict(self):
        candidate = RecordCandidate.from_dict(
            TestDataHelper.create_record_dict(name="Imported", tag="ops")
        )
        self.assertEqual(candidate.name, "Imported")
        self.assertEqual(candidate.material, TestDataHelper.RSA_KEY)
        self.assertEqual(candidate.tag, "ops")

    def test_from_dict_missing_fields(self):
        candidate = RecordCandidate.from_dict({})
        self.assertIsNone(candidate.name)
        self.assertIsNone(candidate.material)
        self.assertIsNone(candidate.tag)


class TestExportDocument(unittest.TestCase):
    """Test cases for ExportDocument."""

    def test_to_dict(self):
        records = (
            TestDataHelper.create_test_record(key_id="a"),
            TestDataHelper.create_test_record(key_id="b", name="Other"),
        )
        exported_at = datetime(2024, 3, 1, tzinfo=timezone.utc)

        data = ExportDocument(exported_at=exported_at, records=records).to_dict()

        self.assertEqual(data["exported_at"], "2024-03-01T00:00:00+00:00")
        self.assertEqual(data["total_keys"], 2)
        self.assertEqual([item["id"] for item in data["keys"]], ["a", "b"])

    def test_empty(self):
        document = ExportDocument(exported_at=datetime.now(timezone.utc))
        self.assertEqual(document.total_count, 0)
        self.assertEqual(document.to_dict()["keys"], [])


class TestImportResult(unittest.TestCase):

    def test_fields(self):
        result = ImportResult(imported_count=2, duplicate_count=1)
        self.assertEqual(result, (2, 1))
        self.assertEqual(result.duplicate_count, 1)


class TestDuplicateRule(unittest.TestCase):
    """Test cases for duplicate detection rules."""

    def setUp(self):
        self.existing = TestDataHelper.create_test_record(name="Laptop")

    def test_name_or_material(self):
        rule = DuplicateRule.NAME_OR_MATERIAL_EQUALS
        self.assertTrue(rule.matches(self.existing, RecordCandidate("Laptop", "other key")))
        self.assertTrue(rule.matches(self.existing, RecordCandidate("Other", TestDataHelper.RSA_KEY)))
        self.assertFalse(rule.matches(self.existing, RecordCandidate("Other", "other key")))

    def test_material_only(self):
        rule = DuplicateRule.MATERIAL_EQUALS
        self.assertFalse(rule.matches(self.existing, RecordCandidate("Laptop", "other key")))
        self.assertTrue(rule.matches(self.existing, RecordCandidate("Other", TestDataHelper.RSA_KEY)))

    def test_name_only(self):
        rule = DuplicateRule.NAME_EQUALS
        self.assertTrue(rule.matches(self.existing, RecordCandidate("Laptop", "other key")))
        self.assertFalse(rule.matches(self.existing, RecordCandidate("Other", TestDataHelper.RSA_KEY)))

    def test_candidate_whitespace_ignored(self):
        """Test untrimmed candidates match their trimmed stored form."""
        rule = DuplicateRule.MATERIAL_EQUALS
        candidate = RecordCandidate("Other", TestDataHelper.RSA_KEY + "\n")
        self.assertTrue(rule.matches(self.existing, candidate))

    def test_name_match_is_case_sensitive(self):
        rule = DuplicateRule.NAME_EQUALS
        self.assertFalse(rule.matches(self.existing, RecordCandidate("laptop", "k")))


if __name__ == "__main__":
    unittest.main()
