import configparser
import os
import tempfile

import simplejson as json

import cronrunner.logging

from .domain import JobDefinition, Schedule

LOG = cronrunner.logging.getLogger(__name__)

RC_FILE_HELP = """\
Sample rcfile:
    [scheduler]
    # default: $CRONRUNNER_STORE_PATH or the temp directory
    store path = /var/tmp
    store file = cron_scheduler.json
    processing flag file = .cron_scheduler_processing_flag
    # seconds before a leftover processing flag is ignored
    processing timeout = 600
    [job.CleanUp]
    # a relative phrase, or an ISO-8601 duration such as PT15M
    interval = next day 5:00
    # a bash command line, or a JSON list: ["./bin/cleanup", "--all"]
    command = ./bin/cleanup --all
    [job.CleanUp.extra]
    # exported to the environment of the command
    retention = 30
"""

DEFAULT_STORE_FILE = "cron_scheduler.json"
DEFAULT_PROCESSING_FLAG_FILE = ".cron_scheduler_processing_flag"
DEFAULT_PROCESSING_TIMEOUT = 600

JOB_PREFIX = "job."
EXTRA_SUFFIX = ".extra"


def _getConfig(cfgParser, section, option, defaultValue=None):
    if not cfgParser.has_section(section):
        return defaultValue
    if not cfgParser.has_option(section, option):
        return defaultValue
    return cfgParser.get(section, option)


def _getDictConfig(cfgParser, section):
    options = {}
    if not cfgParser.has_section(section):
        return options
    for option in cfgParser.options(section):
        options[option] = _getConfig(cfgParser, section, option, None)
    return options


def _getIntConfig(cfgParser, section, option, default):
    val = _getConfig(cfgParser, section, option, None)
    if val is None:
        return default
    try:
        ret = int(val)
    except ValueError:
        ret = -1
    if ret < 0:
        raise ConfigError(
            "RC file has invalid \"{section}.{option}\" setting {optionVal}.  Valid "
            "options: a non-negative number of seconds".format(
                section=section,
                option=option,
                optionVal=val))
    return ret


class ConfigError(Exception):
    pass


class JobConfigError(ConfigError):
    def __init__(self, name, reason):
        super(JobConfigError, self).__init__(
            "Job {!r} is misconfigured: {}".format(name, reason))
        self.name = name
        self.reason = reason


_VAR_OPTIONS = object()


def _parseCommand(name, value):
    value = value.strip()
    if not value.startswith("["):
        return value
    try:
        command = json.loads(value)
    except json.JSONDecodeError as error:
        raise JobConfigError(name, "command is not a valid JSON list: {}".format(
            error)) from error
    if not command or not all(isinstance(arg, str) for arg in command):
        raise JobConfigError(name, "command list must hold strings")
    return command


def jobDefinition(name, spec):
    """
    Build a JobDefinition from a mapping with the keys interval, command and
    (optionally) extraParams. Raises JobConfigError on missing fields.
    """
    missing = [key for key in ("interval", "command") if not spec.get(key)]
    if missing:
        raise JobConfigError(name, "missing {}".format(", ".join(missing)))
    if not isinstance(spec["interval"], str):
        raise JobConfigError(name, "interval must be a string")
    extraParams = spec.get("extraParams") or {}
    if not isinstance(extraParams, dict):
        raise JobConfigError(name, "extraParams must be a mapping")
    return JobDefinition(
        name=name,
        interval=spec["interval"].strip(),
        command=spec["command"],
        extraParams=extraParams,
    )


class Config(object):
    # pylint: disable=too-many-instance-attributes
    validConfig = {
        'scheduler': {'store path', 'store file', 'processing flag file',
                      'processing timeout'},
    }
    validJobConfig = {'interval', 'command'}

    def _validateConfigParser(self, cfgParser):
        cfgSections = set(cfgParser.sections())
        jobSections = {s for s in cfgSections if s.startswith(JOB_PREFIX)}
        unknownSections = cfgSections - jobSections - set(self.validConfig.keys())
        if unknownSections:
            raise ConfigError(
                "RC file has unknown configuration sections: {}".format(
                    ", ".join(sorted(unknownSections))))
        for section in cfgSections:
            cfgValues = set(cfgParser.options(section))
            if section in jobSections:
                if section.endswith(EXTRA_SUFFIX):
                    validSectionConfig = _VAR_OPTIONS
                else:
                    validSectionConfig = self.validJobConfig
            else:
                validSectionConfig = self.validConfig[section]
            if validSectionConfig is not _VAR_OPTIONS:
                assert isinstance(validSectionConfig, set)
                unknownOptions = cfgValues - validSectionConfig
                if unknownOptions:
                    raise ConfigError(
                        "RC file has unknown configuration options in "
                        "section \"{}\": {}".format(
                            section, ", ".join(sorted(unknownOptions))))

    def __init__(self, options):
        self.options = options

        rcFile = os.path.expanduser(options.rcFile)
        cfgParser = configparser.RawConfigParser()
        # job names and extra params are case sensitive
        cfgParser.optionxform = str
        cfgParser.read(rcFile)
        self._validateConfigParser(cfgParser)

        self._storePath = (
            getattr(options, "storePath", None) or
            _getConfig(cfgParser, "scheduler", "store path") or
            os.getenv("CRONRUNNER_STORE_PATH") or
            tempfile.gettempdir())
        self._storeFile = _getConfig(
            cfgParser, "scheduler", "store file", DEFAULT_STORE_FILE)
        self._processingFlagFile = _getConfig(
            cfgParser, "scheduler", "processing flag file",
            DEFAULT_PROCESSING_FLAG_FILE)
        self._processingTimeout = _getIntConfig(
            cfgParser, "scheduler", "processing timeout",
            DEFAULT_PROCESSING_TIMEOUT)

        self._jobSpecs = self._readJobSpecs(cfgParser)

    @staticmethod
    def _readJobSpecs(cfgParser):
        specs = {}
        for section in cfgParser.sections():
            if not section.startswith(JOB_PREFIX) or section.endswith(EXTRA_SUFFIX):
                continue
            name = section[len(JOB_PREFIX):]
            spec = {
                "interval": _getConfig(cfgParser, section, "interval"),
                "command": _getConfig(cfgParser, section, "command"),
                "extraParams": _getDictConfig(cfgParser, section + EXTRA_SUFFIX),
            }
            specs[name] = spec
        return specs

    @property
    def verbose(self):
        return getattr(self.options, "verbose", None)

    @staticmethod
    def checkDir(dirName):
        if not os.access(dirName, os.W_OK | os.X_OK | os.R_OK):
            os.makedirs(dirName, exist_ok=True)
        return dirName

    @property
    def storePath(self):
        return self.checkDir(os.path.expanduser(self._storePath))

    @property
    def storeFile(self):
        return self._storeFile

    @property
    def processingFlagFile(self):
        return self._processingFlagFile

    @property
    def processingTimeout(self):
        return self._processingTimeout

    @property
    def storeFilePath(self):
        return os.path.join(self.storePath, self._storeFile)

    @property
    def processingFlagPath(self):
        return os.path.join(self.storePath, self._processingFlagFile)

    @property
    def logDir(self):
        return self.storePath

    def buildSchedule(self, extraJobs=None):
        """
        Assemble the Schedule for this invocation.

        `extraJobs` is an iterable of (name, interval, command) tuples from the
        command line; a name already configured in the rc file keeps its rc file
        definition. Jobs that cannot be built are left out and returned as
        JobConfigErrors alongside the schedule.
        """
        specs = {}
        for name, spec in self._jobSpecs.items():
            specs[name] = dict(spec)
        for name, interval, command in extraJobs or []:
            if name in specs:
                LOG.warning("ignoring extra job %r, it is already configured", name)
                continue
            specs[name] = {"interval": interval, "command": command}

        jobs = []
        errors = []
        for name, spec in specs.items():
            try:
                if isinstance(spec.get("command"), str):
                    spec["command"] = _parseCommand(name, spec["command"])
                jobs.append(jobDefinition(name, spec))
            except JobConfigError as error:
                LOG.info("skip job: %s", error)
                errors.append(error)
        return Schedule(jobs), errors
