"""
Tests for domain models.
"""

import unittest

from cronrunner.domain import JobDefinition, RunRecord, Schedule

from .helpers import utc


class TestJobDefinition(unittest.TestCase):
    """Test JobDefinition domain model."""

    def test_extra_params_read_only(self):
        """extraParams cannot be changed through the definition."""
        params = {"retention": "30"}
        job = JobDefinition("CleanUp", "next day 5:00", "cleanup", params)
        params["retention"] = "1"

        self.assertEqual(job.extraParams["retention"], "30")
        with self.assertRaises(TypeError):
            job.extraParams["retention"] = "2"

    def test_default_extra_params(self):
        job = JobDefinition("Newsletter", "PT15M", ["send", "--all"])
        self.assertEqual(dict(job.extraParams), {})
        self.assertEqual(job.commandStr(), "send --all")


class TestRunRecord(unittest.TestCase):
    """Test RunRecord domain model."""

    def test_from_definition(self):
        """A new record has never run."""
        job = JobDefinition("CleanUp", "next day 5:00", ["cleanup"], {"a": 1})
        record = RunRecord.fromDefinition(job)

        self.assertEqual(record.name, "CleanUp")
        self.assertEqual(record.interval, "next day 5:00")
        self.assertEqual(record.command, ["cleanup"])
        self.assertEqual(record.extraParams, {"a": 1})
        self.assertIsNone(record.lastRun)
        self.assertEqual(record.lastResult, "")
        self.assertTrue(record.neverRun())

    def test_refresh_keeps_history(self):
        """refresh() updates the definition but not the run history."""
        record = RunRecord(
            name="CleanUp",
            interval="PT1H",
            command="old",
            lastRun=utc(2024, 1, 1, 12, 0),
            lastResult="rc=0",
            extra={"note": "kept"},
        )
        record.refresh(JobDefinition("CleanUp", "PT2H", "new", {"x": "y"}))

        self.assertEqual(record.interval, "PT2H")
        self.assertEqual(record.command, "new")
        self.assertEqual(record.extraParams, {"x": "y"})
        self.assertEqual(record.lastRun, utc(2024, 1, 1, 12, 0))
        self.assertEqual(record.lastResult, "rc=0")
        self.assertEqual(record.extra, {"note": "kept"})


class TestSchedule(unittest.TestCase):
    """Test Schedule collection."""

    def setUp(self):
        self.jobs = [
            JobDefinition("B", "PT1M", "b"),
            JobDefinition("A", "PT1M", "a"),
        ]

    def test_keeps_order(self):
        schedule = Schedule(self.jobs)
        self.assertEqual(schedule.names(), ["B", "A"])
        self.assertEqual(list(schedule), self.jobs)
        self.assertEqual(len(schedule), 2)

    def test_lookup(self):
        schedule = Schedule(self.jobs)
        self.assertIn("A", schedule)
        self.assertNotIn("C", schedule)
        self.assertEqual(schedule["A"].command, "a")

    def test_duplicate_name(self):
        with self.assertRaises(ValueError):
            Schedule(self.jobs + [JobDefinition("A", "PT2M", "again")])

    def test_empty(self):
        schedule = Schedule()
        self.assertEqual(len(schedule), 0)
        self.assertEqual(schedule.names(), [])
