"""
Runs string commands through bash and list commands as an argv.

extraParams are exported to the environment of the command, together with
CRONRUNNER_JOB holding the job name.
"""
import logging
import os
from subprocess import PIPE, STDOUT, Popen

from ..utils import autoDecode, tail

LOG = logging.getLogger(__name__)
OUTPUT_LINES = 20


def priority():
    return {"dispatch": 100}


def commandArgv(command):
    if isinstance(command, str):
        return ["bash", "-c", command]
    if isinstance(command, (list, tuple)) and command and all(
            isinstance(arg, str) for arg in command):
        return list(command)
    raise NotImplementedError


def commandEnv(name, extraParams):
    env = dict(os.environ)
    for key, value in extraParams.items():
        env[str(key)] = str(value)
    env["CRONRUNNER_JOB"] = name
    return env


def dispatch(name, command, extraParams):
    argv = commandArgv(command)
    LOG.info("execute %s: %r", name, argv)
    try:
        with Popen(argv, stdin=PIPE, stdout=PIPE, stderr=STDOUT,
                   env=commandEnv(name, extraParams)) as proc:
            out, _ = proc.communicate(input=b"")
    except OSError as err:
        LOG.debug("OSError %s", err, exc_info=True)
        return "rc={}\n{}".format(-1 * (err.errno or 1), err)
    rc = proc.returncode
    LOG.debug("%s => rc=%d", name, rc)
    output = tail(autoDecode(out), OUTPUT_LINES) if out else ""
    if output:
        return "rc={}\n{}".format(rc, output)
    return "rc={}".format(rc)
