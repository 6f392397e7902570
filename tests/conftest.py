"""
Pytest fixtures for formforge tests.

This module provides:
1. Settings isolated from the environment and .env files
2. A fresh form store, history and engine per test
3. Deterministic row-id factories for layout tests
4. An MCP context wired to the engine
"""

import itertools

import pytest

from formforge.config import Settings
from formforge.services.form_engine import FormEngine
from formforge.services.form_history import HistoryStore
from formforge.services.form_store import FormStore
from formforge.services.mcp_server.server import MCPContext


# ==================== CONFIGURATION ====================


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (ignores FORMFORGE_* variables and .env)."""
    return Settings(_env_file=None, environment="testing")


# ==================== ENGINE ====================


@pytest.fixture
def store(settings) -> FormStore:
    return FormStore(settings)


@pytest.fixture
def history(settings) -> HistoryStore:
    return HistoryStore(settings.history_limit)


@pytest.fixture
def row_ids():
    """Row-id factory producing Row_1, Row_2, ..."""
    counter = itertools.count(1)
    return lambda: f"Row_{next(counter)}"


@pytest.fixture
def engine(settings, store, history, row_ids) -> FormEngine:
    return FormEngine(settings, store=store, history=history, row_id_factory=row_ids)


@pytest.fixture
def form_id(engine) -> str:
    """An empty form named 'Test Form'."""
    return engine.execute("create_form", {"name": "Test Form"})["form_id"]


@pytest.fixture
def components(engine, form_id):
    """Live root component list of the test form."""
    return engine.store.require(form_id).form_schema["components"]


@pytest.fixture
def add(engine, form_id):
    """Add a component to the test form through the engine and return it."""

    def _add(type: str, **kwargs):
        result = engine.execute("add_form_component", {"form_id": form_id, "type": type, **kwargs})
        return result["component"]

    return _add


# ==================== MCP ====================


@pytest.fixture
def mcp_context(engine) -> MCPContext:
    return MCPContext(engine=engine)
