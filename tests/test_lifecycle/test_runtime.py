"""
Tests for runtime wiring from settings.
"""

import pytest

from lifecycle.runtime import build_runtime
from shared.config import Settings
from shared.errors import StorageError
from shared.push import LoggingPushTransport


class TestBuildRuntime:

    def test_start_and_stop(self, users_file):
        runtime = build_runtime(Settings(_env_file=None, users_file=users_file))

        runtime.start()
        try:
            assert runtime.store.connected
            assert runtime.controller.max_workers == 4
            result = runtime.controller.submit(1, {"liters": 10, "rate": 100, "total": 1000})
            assert sorted(result.recipients) == [10, 11]
        finally:
            runtime.stop()

        assert not runtime.store.connected

    def test_credential_reaches_transport(self):
        settings = Settings(_env_file=None, push_credential="server-key")

        runtime = build_runtime(settings)

        assert isinstance(runtime.push, LoggingPushTransport)
        assert runtime.push.credential.get_secret_value() == "server-key"

    def test_injected_transport(self):
        transport = LoggingPushTransport()

        runtime = build_runtime(Settings(_env_file=None), push=transport)

        assert runtime.push is transport
        assert runtime.dispatcher.push is transport

    def test_unsupported_database(self):
        with pytest.raises(StorageError):
            build_runtime(Settings(_env_file=None, database_url="mysql://fuel@db/fuel"))
