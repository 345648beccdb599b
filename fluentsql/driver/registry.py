"""Driver registry, keyed by the same names as ``DialectFactory``."""
from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from fluentsql.config import Settings
from fluentsql.driver.base import Driver
from fluentsql.errors import ConfigurationError

#: Builds a driver from settings.
DriverBuilder = Callable[[Settings], Driver]


class DriverFactory:
    """Registry mapping dialect names to driver constructors.

    Example::

        DriverFactory.register_builder(
            "sqlite", lambda s: SQLiteDriver(s.sqlite_path)
        )
        driver = DriverFactory.create("sqlite", settings)
    """

    _builders: ClassVar[dict[str, DriverBuilder]] = {}

    @classmethod
    def register_builder(cls, name: str, builder: DriverBuilder) -> None:
        cls._builders[name] = builder

    @classmethod
    def create(cls, name: str, settings: Settings) -> Driver:
        """Build the driver registered for ``name``.

        Raises:
            ConfigurationError: If no driver is registered for ``name``.
        """
        builder = cls._builders.get(name)
        if builder is None:
            registered = sorted(cls._builders)
            raise ConfigurationError(
                f"No driver registered for dialect '{name}'. Registered: {registered}.",
                missing=["driver"],
            )
        return builder(settings)

    @classmethod
    def registered_drivers(cls) -> list[str]:
        return sorted(cls._builders)
