import os
import tempfile
import unittest

import simplejson as json

from cronrunner import main
from cronrunner.compat import version

from .helpers import capturedOutput, resetEnv


def setUpModule():
    resetEnv()


class TestParseArgs(unittest.TestCase):
    def testDefaults(self):
        options = main.parseArgs([])
        self.assertIsNone(options.jobs)
        self.assertIsNone(options.storePath)
        self.assertFalse(options.list)
        self.assertFalse(options.debug)
        self.assertEqual("~/.config/cronrunnerrc", options.rcFile)

    def testJobs(self):
        options = main.parseArgs([
            "--job", "Newsletter", "PT15M", "./bin/newsletter --send",
            "-j", "CleanUp", "next day 5:00", "cleanup",
            "--store-path", "/srv/cron",
        ])
        self.assertEqual([
            ["Newsletter", "PT15M", "./bin/newsletter --send"],
            ["CleanUp", "next day 5:00", "cleanup"],
        ], options.jobs)
        self.assertEqual("/srv/cron", options.storePath)


class TestMain(unittest.TestCase):
    def setUp(self):
        self.tmpDir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpDir.cleanup)
        self.storeFile = os.path.join(self.tmpDir.name, "cron_scheduler.json")
        self.flagFile = os.path.join(self.tmpDir.name, ".cron_scheduler_processing_flag")

    def runMain(self, *args, rcFile="/dev/null"):
        argv = ["--store-path", self.tmpDir.name, "--rc-file", rcFile] + list(args)
        with capturedOutput() as (out, err):
            with self.assertRaises(SystemExit) as ctx:
                main.main(argv)
        return ctx.exception.code, out.getvalue(), err.getvalue()

    def testRunsJob(self):
        rc, out, _ = self.runMain("--job", "Echo", "PT1M", "echo hello")
        self.assertEqual(0, rc)
        self.assertIn("Running Echo", out)
        with open(self.storeFile, encoding="utf-8") as fp:
            store = json.load(fp)
        self.assertEqual("rc=0\nhello", store["Echo"]["lastResult"])
        self.assertFalse(os.path.exists(self.flagFile))

        rc, out, _ = self.runMain("--job", "Echo", "PT1M", "echo hello")
        self.assertEqual(0, rc)
        self.assertIn("Not time to run Echo, skipping.", out)

    def testLocked(self):
        with open(self.flagFile, "w", encoding="utf-8"):
            pass
        rc, out, _ = self.runMain("--job", "Echo", "PT1M", "echo hello")
        self.assertEqual(main.EXIT_LOCKED, rc)
        self.assertIn("Scheduler already running! Exiting.", out)
        self.assertFalse(os.path.exists(self.storeFile))

    def testCorruptStore(self):
        with open(self.storeFile, "w", encoding="utf-8") as fp:
            fp.write("not json")
        rc, _, _ = self.runMain("--job", "Echo", "PT1M", "echo hello")
        self.assertEqual(1, rc)
        with open(self.storeFile, encoding="utf-8") as fp:
            self.assertEqual("not json", fp.read())

    def testBadRcFile(self):
        rcFile = os.path.join(self.tmpDir.name, "cronrunnerrc")
        with open(rcFile, "w", encoding="utf-8") as fp:
            fp.write("[nonsense]\n")
        rc, _, err = self.runMain(rcFile=rcFile)
        self.assertEqual(1, rc)
        self.assertIn("Error: RC file has unknown configuration sections", err)

    def testSkipsMisconfiguredJob(self):
        rcFile = os.path.join(self.tmpDir.name, "cronrunnerrc")
        with open(rcFile, "w", encoding="utf-8") as fp:
            fp.write("[job.Broken]\ninterval = PT1M\n")
        rc, out, _ = self.runMain(rcFile=rcFile)
        self.assertEqual(0, rc)
        self.assertIn("Skipping Job 'Broken' is misconfigured: missing command", out)

    def testListEmpty(self):
        rc, out, _ = self.runMain("--list")
        self.assertEqual(0, rc)
        self.assertIn("No jobs in", out)

    def testList(self):
        self.runMain("--job", "Echo", "PT1H", "echo hello")
        self.runMain("--job", "Bad", "sometime", "true")
        rc, out, _ = self.runMain("--list")
        self.assertEqual(0, rc)
        lines = out.splitlines()
        self.assertEqual(2, len(lines))
        self.assertTrue(lines[0].startswith("Echo: last run "))
        self.assertTrue(lines[0].endswith("last result rc=0"))
        self.assertEqual(
            "Bad: last run never, next run invalid interval, last result -",
            lines[1])

    def testListVerbose(self):
        self.runMain("--job", "Echo", "PT1H", "echo one; echo two")
        _, out, _ = self.runMain("--list")
        self.assertNotIn("two", out)
        rc, out, _ = self.runMain("--list", "-v")
        self.assertEqual(0, rc)
        self.assertEqual(["    one", "    two"], out.splitlines()[1:])

    def testVersion(self):
        with capturedOutput() as (out, _):
            with self.assertRaises(SystemExit) as ctx:
                main.main(["--version"])
        self.assertEqual(0, ctx.exception.code)
        self.assertEqual("Version {}\n".format(version()), out.getvalue())
