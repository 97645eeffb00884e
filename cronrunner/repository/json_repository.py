"""
JSON file implementation of RunRepository.
"""

import logging
import os
import tempfile

import simplejson as json

from cronrunner.adapters import RecordFormatError, record_from_dict, record_to_dict
from cronrunner.compat import encoding_open

from .interface import RunRepository, RunStore, StoreCorruptError

LOG = logging.getLogger(__name__)


class JsonRunRepository(RunRepository):
    """
    Stores every run record in one JSON object keyed by job name.
    """

    def __init__(self, path: str):
        self.path = path

    def __repr__(self):
        return "JsonRunRepository({!r})".format(self.path)

    def read(self) -> str:
        try:
            with encoding_open(self.path, "r") as fp:
                return fp.read()
        except FileNotFoundError:
            LOG.debug("no store at %s", self.path)
            return ""
        except UnicodeDecodeError as error:
            raise StoreCorruptError(
                "Store {} is not valid UTF-8: {}".format(self.path, error)) from error

    def load(self) -> RunStore:
        text = self.read()
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as error:
            raise StoreCorruptError(
                "Store {} is not valid JSON: {}".format(self.path, error)) from error
        if data == []:
            # an empty store written as a JSON array
            return {}
        if not isinstance(data, dict):
            raise StoreCorruptError(
                "Store {} holds {}, expected an object".format(
                    self.path, type(data).__name__))
        store = {}
        for key, value in data.items():
            try:
                store[key] = record_from_dict(key, value)
            except RecordFormatError as error:
                raise StoreCorruptError(
                    "Store {}: {}".format(self.path, error)) from error
        LOG.debug("loaded %d records from %s", len(store), self.path)
        return store

    def save(self, store: RunStore) -> None:
        data = {key: record_to_dict(record) for key, record in store.items()}
        content = json.dumps(data, indent=2)
        dirName = os.path.dirname(os.path.abspath(self.path))
        tmpName = None
        try:
            with tempfile.NamedTemporaryFile(
                    mode="w",
                    encoding="utf-8",
                    dir=dirName,
                    prefix=".{}.".format(os.path.basename(self.path)),
                    suffix=".tmp",
                    delete=False) as tmp:
                tmpName = tmp.name
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmpName, self.path)
            tmpName = None
        finally:
            if tmpName and os.path.exists(tmpName):
                os.unlink(tmpName)
        LOG.debug("saved %d records to %s", len(data), self.path)
