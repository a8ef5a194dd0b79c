"""
In-memory stand-ins for the Mongo client and connector used across tests.
"""

import asyncio
from collections import defaultdict
from typing import Optional

from userhub.context import AppContext
from userhub.topology import DeploymentTopology
from userhub.utils.config import Settings


class FakeCollection:
    def __init__(self):
        self.documents = {}

    def insert(self, document: dict) -> None:
        self.documents[document["_id"]] = dict(document)

    async def find_one(self, query: dict) -> Optional[dict]:
        document = self.documents.get(query.get("_id"))
        return dict(document) if document is not None else None


class FakeDatabase:
    def __init__(self):
        self.collections = defaultdict(FakeCollection)

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections[name]


class FakeMongoClient:
    def __init__(self):
        self.databases = defaultdict(FakeDatabase)
        self.closed = False

    def get_database(self, name: str) -> FakeDatabase:
        return self.databases[name]

    def get_default_database(self, default: Optional[str] = None) -> FakeDatabase:
        return self.databases[default]

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Counts connect calls; can be held open with ``gate`` and made to fail."""

    def __init__(self, client=None, fail_times: int = 0, always_fail: bool = False, gate=None):
        self.client = client or FakeMongoClient()
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.gate = gate
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.always_fail or self.calls <= self.fail_times:
            raise ConnectionRefusedError("connection refused")
        return self.client


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def make_context(topology: DeploymentTopology, connector=None, **overrides) -> AppContext:
    settings = make_settings(**overrides)
    return AppContext.create(topology, settings, connector or FakeConnector())
