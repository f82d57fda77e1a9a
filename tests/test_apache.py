"""
Tests for the Apache style block driver.
"""

import logging

import pytest

from structconf.container import ConfigNode, NodeKind
from structconf.drivers import ApacheDriver, ParseError

SOURCE = """\
# Virtual hosts
<VirtualHost 127.0.0.1:80 [::1]:80>
  DocumentRoot /var/www

  <Location /admin>
    Require group admin
  </Location>
</VirtualHost>
"""


def test_parse(root: ConfigNode) -> None:
    """Sections nest and their arguments become attributes."""
    ApacheDriver().parse_string(SOURCE, root)

    host = root.get_item(NodeKind.SECTION, "VirtualHost")
    assert host.attributes == {"0": "127.0.0.1:80", "1": "[::1]:80"}
    assert host.directive_content("DocumentRoot") == "/var/www"

    require = root.search_path(["VirtualHost", ("Location", {"0": "/admin"}), "Require"])
    assert require.content == "group admin"


def test_round_trip(root: ConfigNode) -> None:
    """Well indented input renders back unchanged."""
    ApacheDriver().parse_string(SOURCE, root)
    assert ApacheDriver().render(root) == SOURCE


def test_indent_option(root: ConfigNode) -> None:
    """The indentation unit is configurable."""
    section = root.create_section("IfModule", {"0": "mod_ssl.c"})
    section.create_directive("SSLEngine", "on")
    section.create_directive("SSLRequireSSL")

    assert ApacheDriver(indent="\t").render(root) == (
        "<IfModule mod_ssl.c>\n\tSSLEngine on\n\tSSLRequireSSL\n</IfModule>\n"
    )


def test_section_without_arguments(root: ConfigNode) -> None:
    """A bare section has no attributes."""
    ApacheDriver().parse_string("<Global>\nKey value\n</Global>\n", root)
    assert root.get_item(NodeKind.SECTION, "Global").attributes is None


def test_continuation(root: ConfigNode) -> None:
    """Continued lines join with a single space."""
    ApacheDriver().parse_string("ServerAlias a.example.org \\\n    b.example.org\n", root)
    assert root.directive_content("ServerAlias") == "a.example.org b.example.org"


def test_mismatched_close(root: ConfigNode) -> None:
    """A close marker must match the open section."""
    with pytest.raises(ParseError) as excinfo:
        ApacheDriver().parse_string("<A>\n</B>\n", root)
    assert excinfo.value.line == 2


def test_close_without_open(root: ConfigNode) -> None:
    """A close marker at top level is an error."""
    with pytest.raises(ParseError):
        ApacheDriver().parse_string("</A>\n", root)


def test_unclosed_section_lenient(root: ConfigNode, caplog) -> None:
    """Unclosed sections are kept with a warning by default."""
    with caplog.at_level(logging.WARNING):
        ApacheDriver().parse_string("<A>\nKey value\n", root, "site.conf")

    assert root.search_path(["A", "Key"]).content == "value"
    assert "unclosed section" in caplog.text


def test_unclosed_section_strict(root: ConfigNode) -> None:
    """Strict mode rejects unclosed sections."""
    with pytest.raises(ParseError, match="Unclosed"):
        ApacheDriver(strict=True).parse_string("<A>\n<B>\n</B>\n", root)


def test_syntax_error(root: ConfigNode) -> None:
    """Lines that are not directives or markers fail."""
    with pytest.raises(ParseError):
        ApacheDriver().parse_string("<<broken>>\n", root)
