"""
This module implements the dispatcher plugin contract.

Dispatcher modules are registered using the cronrunner.dispatchers entrypoint.
Modules that are registered as such implement:

    def dispatch(name, command, extraParams):
        # run `command` for job `name`, return the outcome as text
        return "rc=0"

and can optionally implement:

    def priority():
        return {"dispatch": 10}

If a dispatcher cannot handle a command (wrong kind of command, missing
backend) it should raise NotImplementedError so that the next dispatcher at a
possibly lower priority will get called instead. Any other exception is a
failure of the job itself.
"""
from operator import attrgetter
import logging

from .compat import get_plugins
from .dispatchers import http, shell

logger = logging.getLogger(__name__)
PRIO_LOWEST = 1 << 31

ENTRY_POINT_GROUP = "cronrunner.dispatchers"
BUILTIN_DISPATCHERS = (http, shell)


class DispatchError(Exception):
    pass


class Dispatchers(object):
    def __init__(self, plugins=None):
        if plugins is None:
            plugins = {plug.load() for plug in get_plugins(ENTRY_POINT_GROUP)}
            plugins |= set(BUILTIN_DISPATCHERS)
        self.plugins = list(sorted(plugins, key=attrgetter("__name__")))
        logger.debug("all dispatchers: %r", [p.__name__ for p in self.plugins])
        self._prio = {}
        for plugin in self.plugins:
            if hasattr(plugin, "priority"):
                self._prio[plugin.__name__] = plugin.priority()

    def _pluginCalls(self, func, *args, **kwargs):
        prio = {}
        for plugin in self.plugins:
            if hasattr(plugin, func):
                pluginPrioMap = self._prio.get(plugin.__name__, {})
                pval = pluginPrioMap.get(func, pluginPrioMap.get("", PRIO_LOWEST))
                prio.setdefault(pval, []).append(plugin)

        for pval, plugins in sorted(prio.items()):
            for plugin in plugins:
                name = plugin.__name__
                try:
                    result = getattr(plugin, func)(*args, **kwargs)
                    logger.debug("%r: yield plugin %s => %r", pval, name, result)
                    yield result
                except NotImplementedError:
                    logger.debug("%r: plugin %s NotImplementedError", pval, name)
                    continue

    def dispatch(self, name, command, extraParams):
        """
        Run `command` with the first dispatcher that accepts it and return the
        outcome text. Raises DispatchError if none does.
        """
        for result in self._pluginCalls("dispatch", name, command, dict(extraParams)):
            return "" if result is None else str(result)
        raise DispatchError("No dispatcher accepts command {!r}".format(command))
