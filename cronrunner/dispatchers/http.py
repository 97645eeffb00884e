"""
POSTs the job to a webhook when its command is an http(s) URL.
"""
import logging

import requests

LOG = logging.getLogger(__name__)
BODY_CHARS = 500


def priority():
    return {"dispatch": 10}


def dispatch(name, command, extraParams):
    if not isinstance(command, str) or not command.startswith(("http://", "https://")):
        raise NotImplementedError
    payload = {"job": name, "params": extraParams}
    LOG.info("post %s to %s", name, command)
    # jobs are never timed out, webhooks included
    response = requests.post(command, json=payload)  # pylint: disable=missing-timeout
    LOG.debug("%s => %d", command, response.status_code)
    body = response.text[:BODY_CHARS]
    if body:
        return "status={}\n{}".format(response.status_code, body)
    return "status={}".format(response.status_code)
