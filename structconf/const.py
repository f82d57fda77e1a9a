"""
Application constants and metadata.
"""

# Application info
APP_NAME = "structconf"
APP_VERSION = "0.1.0"
APP_URL = "https://github.com/structconf/structconf"

# Registered format names
APACHE = "apache"
GENERIC = "generic"
INI = "ini"
INI_COMMENTED = "ini_commented"
PHP_ARRAY = "php_array"
PHP_CONSTANTS = "php_constants"
XML = "xml"

# Name of the root section of every tree
ROOT_NAME = "root"
