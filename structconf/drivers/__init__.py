"""
Format drivers translating between text formats and ConfigNode trees.
"""

from .apache import ApacheDriver, ApacheOptions
from .base import Driver, DriverError, DriverOptions, OptionError, ParseError
from .generic import GenericDriver, GenericOptions
from .ini import IniFileDriver, IniFileOptions
from .ini_commented import IniCommentedDriver, IniCommentedOptions
from .php_array import PhpArrayDriver, PhpArrayOptions
from .php_constants import PhpConstantsDriver, PhpConstantsOptions
from .xml import XmlDriver, XmlOptions

# Drivers shipped with the package, in registry order
BUILTIN_DRIVERS: tuple[type[Driver], ...] = (
    ApacheDriver,
    GenericDriver,
    IniCommentedDriver,
    IniFileDriver,
    PhpArrayDriver,
    PhpConstantsDriver,
    XmlDriver,
)

__all__ = [
    "Driver",
    "DriverError",
    "DriverOptions",
    "OptionError",
    "ParseError",
    "ApacheDriver",
    "ApacheOptions",
    "GenericDriver",
    "GenericOptions",
    "IniFileDriver",
    "IniFileOptions",
    "IniCommentedDriver",
    "IniCommentedOptions",
    "PhpArrayDriver",
    "PhpArrayOptions",
    "PhpConstantsDriver",
    "PhpConstantsOptions",
    "XmlDriver",
    "XmlOptions",
    "BUILTIN_DRIVERS",
]
