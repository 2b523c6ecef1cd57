"""Persistence for tracked items."""

from price_monitor.storage.engine import create_engine, create_session_factory, init_models
from price_monitor.storage.sql import SqlItemStore

__all__ = ["SqlItemStore", "create_engine", "create_session_factory", "init_models"]
