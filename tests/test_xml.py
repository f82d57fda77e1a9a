"""
Tests for the XML driver.
"""

from pathlib import Path

import pytest

from structconf.container import ConfigNode, NodeKind
from structconf.drivers import ParseError, XmlDriver

SOURCE = """\
<?xml version="1.0" encoding="UTF-8"?>
<config>
  <!-- database -->
  <db host="localhost">
    <user>admin</user>
    <password>a &amp; b</password>
    <empty/>
  </db>
</config>
"""


def test_parse_string(root: ConfigNode) -> None:
    """Elements with children become sections, leaves directives."""
    XmlDriver(is_file=False).parse(SOURCE, root)

    config = root.get_item(NodeKind.SECTION, "config")
    assert config.children[0].kind == NodeKind.COMMENT
    assert config.children[0].content == "database"

    db = root.search_path(["config", ("db", {"host": "localhost"})])
    assert db.kind == NodeKind.SECTION
    assert db.directive_content("user") == "admin"
    assert db.directive_content("password") == "a & b"
    assert db.get_item(name="empty").kind == NodeKind.DIRECTIVE


def test_parse_file(root: ConfigNode, tmp_path: Path) -> None:
    """By default parse() reads a file."""
    path = tmp_path / "config.xml"
    path.write_text(SOURCE, encoding="utf-8")

    XmlDriver().parse(path, root)

    assert root.search_path(["config", "db", "user"]).content == "admin"


def test_round_trip(root: ConfigNode) -> None:
    """Well formatted input renders back unchanged."""
    XmlDriver().parse_string(SOURCE, root)
    assert XmlDriver().render(root) == SOURCE.replace("<empty/>", "<empty />")


def test_render_options(root: ConfigNode) -> None:
    """Declaration, wrapper element, indent and CDATA are options."""
    root.create_directive("script", "a < b")
    root.create_section("nothing")

    driver = XmlDriver(add_declaration=False, name="settings", indent="\t", use_cdata=True)
    assert driver.render(root) == (
        "<settings>\n"
        "\t<script><![CDATA[a < b]]></script>\n"
        "\t<nothing/>\n"
        "</settings>\n"
    )


def test_render_escaping(root: ConfigNode) -> None:
    """Text and attribute values are escaped."""
    root.create_directive("title", "Q&A <draft>", {"note": 'say "hi"'})

    assert XmlDriver(add_declaration=False).render(root) == (
        '<title note="say &quot;hi&quot;">Q&amp;A &lt;draft&gt;</title>\n'
    )
    assert XmlDriver(add_declaration=False, use_attributes=False).render(root) == (
        "<title>Q&amp;A &lt;draft&gt;</title>\n"
    )


def test_blank_not_rendered(root: ConfigNode) -> None:
    """Blank nodes have no XML form."""
    root.create_blank()
    root.create_directive("a", "1")
    assert XmlDriver(add_declaration=False).render(root) == "<a>1</a>\n"


def test_invalid_xml(root: ConfigNode) -> None:
    """Malformed documents fail with the error line."""
    with pytest.raises(ParseError) as excinfo:
        XmlDriver().parse_string("<a>\n<b>\n</a>\n", root, "broken.xml")

    assert excinfo.value.line == 3
    assert excinfo.value.source == "broken.xml"
    # Elements opened before the error stay in the tree
    assert root.get_item(name="a") is not None


def test_missing_file(root: ConfigNode, tmp_path: Path) -> None:
    """A missing file fails with ParseError."""
    with pytest.raises(ParseError):
        XmlDriver().parse(tmp_path / "missing.xml", root)
