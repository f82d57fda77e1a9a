"""
Configuration document facade and driver registry.

Usage:
    doc = ConfigDocument()
    root = doc.parse("/etc/php.ini", "ini_commented")
    root.set_directive("memory_limit", "256M")
    doc.write()                                  # same file, same format
    print(doc.render("php_array", {"name": "php_ini"}))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from .const import ROOT_NAME
from .container import ConfigNode, NodeKind
from .drivers import BUILTIN_DRIVERS, Driver, DriverOptions
from .logging import get_logger

logger = get_logger("document")

DriverFactory = Callable[..., Driver]
Options = DriverOptions | Mapping[str, Any] | None


class ConfigError(Exception):
    """Exception raised for document level errors."""

    pass


class UnknownFormatError(ConfigError):
    """Exception raised when no driver is registered for a format."""

    pass


class DriverRegistry:
    """
    Maps format names to driver factories.

    A factory is any callable taking an options argument and returning a
    Driver, usually the driver class itself.
    """

    def __init__(self, drivers: Mapping[str, DriverFactory] | None = None):
        self._drivers: dict[str, DriverFactory] = dict(drivers or {})

    @classmethod
    def with_defaults(cls) -> DriverRegistry:
        """Registry holding every built-in driver."""
        return cls({driver.name: driver for driver in BUILTIN_DRIVERS})

    def register(self, name: str, factory: DriverFactory, replace: bool = False) -> None:
        """
        Register a driver factory.

        An already registered name is kept unless replace is set.
        """
        if name in self._drivers and not replace:
            logger.debug(f"Format '{name}' already registered, keeping existing driver")
            return
        self._drivers[name] = factory

    def is_registered(self, name: str) -> bool:
        return name in self._drivers

    def names(self) -> list[str]:
        return sorted(self._drivers)

    def create(self, name: str, options: Options = None) -> Driver:
        """Instantiate the driver registered for name."""
        factory = self._drivers.get(name)
        if factory is None:
            raise UnknownFormatError(
                f"Configuration type '{name}' is not registered "
                f"(known: {', '.join(self.names())})"
            )
        driver = factory(options)
        if not isinstance(driver, Driver):
            raise ConfigError(f"Factory for '{name}' did not return a Driver")
        return driver


class ConfigDocument:
    """
    A configuration tree bound to the source it was parsed from.

    The document remembers the source, format and options of the last
    parse() so write() can save back to the same place.
    """

    def __init__(self, registry: DriverRegistry | None = None):
        self.registry = registry or DriverRegistry.with_defaults()
        self._root = ConfigNode.root()
        self.source: Any = None
        self.format: str | None = None
        self.options: DriverOptions | None = None

    @property
    def root(self) -> ConfigNode:
        return self._root

    def set_root(self, node: ConfigNode) -> None:
        """
        Replace the document's tree.

        A section named "root" is used as is; any other node becomes the
        first child of a fresh root.
        """
        if node.kind == NodeKind.SECTION and node.name == ROOT_NAME:
            if node.parent is not None:
                node.remove_item()
            self._root = node
        else:
            self._root = ConfigNode.root()
            self._root.add_item(node)

    def get_driver(self, fmt: str, options: Options = None) -> Driver:
        return self.registry.create(fmt, options)

    def parse(self, source: Any, fmt: str, options: Options = None) -> ConfigNode:
        """
        Parse a source into the document's root.

        Args:
            source: Path to the source (or a mapping for php_array)
            fmt: Registered format name
            options: Driver options

        Returns:
            The root section

        Raises:
            ParseError: If the source cannot be read or parsed
            UnknownFormatError: If fmt is not registered
        """
        driver = self.get_driver(fmt, options)
        logger.info(f"Parsing {source if not isinstance(source, Mapping) else '<mapping>'} as {fmt}")
        driver.parse(source, self._root)

        self.source = source
        self.format = fmt
        self.options = driver.options
        return self._root

    def parse_string(
        self,
        text: str,
        fmt: str,
        options: Options = None,
        source_id: str = "<string>",
    ) -> ConfigNode:
        """
        Parse source text into the document's root.

        The document forgets any file from an earlier parse(), so write()
        needs an explicit path afterwards.
        """
        driver = self.get_driver(fmt, options)
        driver.parse_string(text, self._root, source_id)

        self.source = None
        self.format = fmt
        self.options = driver.options
        return self._root

    def render(self, fmt: str | None = None, options: Options = None) -> str:
        """Render the tree, defaulting to the parsed format and options."""
        fmt, options = self._resolve(fmt, options)
        return self.get_driver(fmt, options).render(self._root)

    def write(
        self,
        path: str | Path | None = None,
        fmt: str | None = None,
        options: Options = None,
    ) -> None:
        """
        Write the tree to a file.

        Path, format and options default to those of the last parse().
        """
        if path is None:
            if not isinstance(self.source, (str, Path)):
                raise ConfigError("No file to write to: pass a path")
            path = self.source
        fmt, options = self._resolve(fmt, options)

        driver = self.get_driver(fmt, options)
        self._root.write(path, driver)
        logger.info(f"Wrote {fmt} configuration to {path}")

    def _resolve(self, fmt: str | None, options: Options) -> tuple[str, Options]:
        if fmt is None:
            if self.format is None:
                raise ConfigError("No format given and nothing was parsed")
            fmt = self.format
            if options is None:
                options = self.options
        return fmt, options

    def to_array(self, include_attributes: bool = True) -> dict[str, Any]:
        return self._root.to_array(include_attributes)
