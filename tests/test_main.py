"""
Unit tests for the application factory, lifespan and entrypoint.
"""
import importlib

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from pymongo.errors import ServerSelectionTimeoutError

from freelago import main as main_module
from freelago.config import AppConfig
from freelago.database import MongoConnectionCache
from freelago.main import create_app
from freelago.storage import InMemoryTaskStore, MongoTaskStore


class TestLifespan:

    @pytest.mark.asyncio
    async def test_builds_configured_store(self):
        app = create_app(config=AppConfig(storage_backend="memory"))

        async with app.router.lifespan_context(app):
            assert isinstance(app.state.task_store, InMemoryTaskStore)

    @pytest.mark.asyncio
    async def test_startup_survives_unreachable_database(self):
        client = MagicMock()
        client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("unreachable"))
        config = AppConfig(storage_backend="mongo", mongodb_uri_override="mongodb://nowhere:27017")
        cache = MongoConnectionCache(config, client_factory=MagicMock(return_value=client))
        app = create_app(config=config, task_store=MongoTaskStore(cache))

        async with app.router.lifespan_context(app):
            assert not cache.is_established


class TestEntrypoint:

    def test_production_mode_does_not_listen(self):
        with patch.object(main_module, "get_app_config", return_value=AppConfig(environment="production")), \
                patch.object(main_module, "setup_logging"), \
                patch("uvicorn.run") as run:
            assert main_module.main() == 0

        run.assert_not_called()

    def test_local_mode_runs_uvicorn(self):
        config = AppConfig(environment="development", host="127.0.0.1", port=4000)
        with patch.object(main_module, "get_app_config", return_value=config), \
                patch.object(main_module, "setup_logging"), \
                patch("uvicorn.run") as run:
            assert main_module.main() == 0

        assert run.call_args.kwargs["port"] == 4000
        assert run.call_args.kwargs["host"] == "127.0.0.1"

    def test_invalid_configuration_exits_non_zero(self):
        with patch.object(main_module, "get_app_config", side_effect=ValueError("bad")), \
                patch.object(main_module, "setup_logging"):
            assert main_module.main() == 1

    def test_bad_environment_fails_in_main_not_at_import(self, monkeypatch):
        monkeypatch.setenv("FREELAGO_STORAGE_BACKEND", "sqlite")
        with patch("freelago.config.app_config._CONFIG", None):
            importlib.reload(main_module)
            with patch.object(main_module, "setup_logging"), patch("uvicorn.run") as run:
                assert main_module.main() == 1

        run.assert_not_called()
