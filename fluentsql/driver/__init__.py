"""Drivers that execute compiled statements."""
from fluentsql.driver.base import Connection, Driver
from fluentsql.driver.postgres import PostgresDriver
from fluentsql.driver.registry import DriverFactory
from fluentsql.driver.sqlite import SQLiteDriver

__all__ = [
    "Connection",
    "Driver",
    "DriverFactory",
    "PostgresDriver",
    "SQLiteDriver",
]
