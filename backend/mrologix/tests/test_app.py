import inspect

from fastapi.routing import APIRoute

from .conftest import engine
from mrologix.config import DatabaseConfig
from mrologix.database import build_engine
from mrologix.main import app

# only handlers that await a multipart read may run on the event loop
UPLOAD_HANDLERS = {
    ("POST", "/api/airport-id"),
    ("PUT", "/api/airport-id/{badge_id}"),
    ("POST", "/api/document-storage/files"),
    ("POST", "/api/flight-records"),
    ("POST", "/api/incoming-inspections"),
    ("POST", "/api/manuals"),
    ("POST", "/api/manuals/upload"),
    ("PUT", "/api/manuals/{manual_id}"),
    ("POST", "/api/sdr-reports"),
    ("POST", "/api/sms-reports"),
    ("POST", "/api/stock-inventory"),
    ("POST", "/api/technician-training"),
}


def test_only_upload_handlers_are_coroutines():
    coroutines = {
        (method, route.path)
        for route in app.routes
        if isinstance(route, APIRoute) and inspect.iscoroutinefunction(route.endpoint)
        for method in route.methods
    }
    assert coroutines == UPLOAD_HANDLERS


def test_blocking_handlers_are_plain_functions():
    sync_paths = {
        route.path
        for route in app.routes
        if isinstance(route, APIRoute) and not inspect.iscoroutinefunction(route.endpoint)
    }
    assert "/api/signin" in sync_paths
    assert "/api/register" in sync_paths
    assert "/api/stock-inventory/bulk-delete" in sync_paths


def test_sqlite_engine_options_come_from_settings():
    config = DatabaseConfig(url="sqlite:///./options.db", echo=True)
    assert config.engine_options["connect_args"]["check_same_thread"] is False
    assert config.engine_options["echo"] is True
    assert build_engine(config).echo is True
    assert engine.url.drivername == "sqlite"


def test_server_engine_options_ping_pool():
    config = DatabaseConfig(url="postgresql://mro:mro@db/mrologix")
    assert config.engine_options["pool_pre_ping"] is True
    assert "connect_args" not in config.engine_options
