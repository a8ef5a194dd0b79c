import asyncio
import tempfile
import unittest
from pathlib import Path

import httpx
from fastapi.testclient import TestClient

from userhub.controllers import default_route_table
from userhub.errors import ConfigurationError
from userhub.handler import ConnectionGate, HandlerAdapter
from userhub.services.database_service import ConnectionState
from userhub.services.realtime_service import RealtimeHub
from userhub.topology import DeploymentTopology
from tests.fakes import FakeConnector, make_context

GATEWAY_ERROR = {"status": "error", "message": "Internal Server Error"}


def _seed(connector: FakeConnector) -> None:
    database = connector.client.get_default_database("userhub")
    database["users"].insert({"_id": "u1", "name": "Ada"})


class HandlerAdapterTests(unittest.TestCase):
    def test_connection_failure_returns_fixed_500_and_keeps_serving(self):
        connector = FakeConnector(always_fail=True)
        adapter = HandlerAdapter(make_context(DeploymentTopology.FUNCTION_PER_INVOCATION, connector))
        client = TestClient(adapter.asgi)

        first = client.get("/api/v1/user/u1")
        second = client.get("/api/v1/user/u1")

        self.assertEqual(first.status_code, 500)
        self.assertEqual(first.json(), GATEWAY_ERROR)
        self.assertEqual(second.status_code, 500)
        self.assertEqual(connector.calls, 2)

    def test_next_invocation_retries_after_failure(self):
        connector = FakeConnector(fail_times=1)
        _seed(connector)
        context = make_context(DeploymentTopology.FUNCTION_PER_INVOCATION, connector)
        client = TestClient(HandlerAdapter(context).asgi)

        failed = client.get("/api/v1/user/u1")
        recovered = client.get("/api/v1/user/u1")
        cached = client.get("/api/v1/user/u1")

        self.assertEqual(failed.json(), GATEWAY_ERROR)
        self.assertEqual(recovered.status_code, 200)
        self.assertEqual(recovered.json()["data"]["user"]["name"], "Ada")
        self.assertEqual(cached.status_code, 200)
        self.assertEqual(connector.calls, 2)
        self.assertEqual(context.connections.state, ConnectionState.CONNECTED)

    def test_failure_does_not_reach_route_tree(self):
        connector = FakeConnector(always_fail=True)
        client = TestClient(HandlerAdapter(make_context(DeploymentTopology.FUNCTION_PER_INVOCATION, connector)).asgi)

        response = client.get("/api/v1/unknown-path")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), GATEWAY_ERROR)

    def test_unknown_path_is_404_once_connected(self):
        client = TestClient(HandlerAdapter(make_context(DeploymentTopology.FUNCTION_PER_INVOCATION)).asgi)

        response = client.get("/api/v1/unknown-path")

        self.assertEqual(response.status_code, 404)
        self.assertIn("/api/v1/unknown-path", response.json()["message"])

    def test_rejects_server_topology(self):
        with self.assertRaises(ConfigurationError):
            HandlerAdapter(make_context(DeploymentTopology.LONG_RUNNING_SERVER))


class ReadOnlyEdgeTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_no_filesystem_or_realtime_side_effects(self):
        table = default_route_table()
        context = make_context(DeploymentTopology.READ_ONLY_EDGE, STATIC_ROOT=str(self.root))

        adapter = HandlerAdapter(context, table)

        self.assertEqual(list(self.root.iterdir()), [])
        self.assertIsInstance(adapter.asgi, ConnectionGate)
        self.assertNotIsInstance(adapter.asgi.app, RealtimeHub)
        self.assertIs(adapter.app.state.route_table, table)

    def test_uploads_path_has_no_static_mount(self):
        (self.root / "uploads").mkdir()
        (self.root / "uploads" / "avatar.png").write_bytes(b"png")
        context = make_context(DeploymentTopology.READ_ONLY_EDGE, STATIC_ROOT=str(self.root))
        client = TestClient(HandlerAdapter(context).asgi)

        response = client.get("/uploads/avatar.png")

        self.assertEqual(response.status_code, 404)
        self.assertIn("/uploads/avatar.png", response.json()["message"])


class ConcurrentInvocationTests(unittest.IsolatedAsyncioTestCase):
    async def test_cold_start_invocations_share_one_connect(self):
        gate = asyncio.Event()
        connector = FakeConnector(gate=gate)
        _seed(connector)
        adapter = HandlerAdapter(make_context(DeploymentTopology.FUNCTION_PER_INVOCATION, connector))
        transport = httpx.ASGITransport(app=adapter.asgi)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            first = asyncio.create_task(client.get("/api/v1/user/u1"))
            second = asyncio.create_task(client.get("/api/v1/user/u1"))
            await asyncio.sleep(0.01)
            gate.set()
            responses = await asyncio.gather(first, second)

        self.assertEqual(connector.calls, 1)
        self.assertEqual([r.status_code for r in responses], [200, 200])


if __name__ == "__main__":
    unittest.main()
