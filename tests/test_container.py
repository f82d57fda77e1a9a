"""
Tests for the configuration tree.
"""

import gc

import pytest

from structconf.container import (
    CannotRemoveRoot,
    ConfigNode,
    ContainerError,
    InvalidPosition,
    NodeKind,
    NotASection,
    Where,
)


def names(section: ConfigNode) -> list[str]:
    return [child.name or child.content for child in section.children]


def test_root_section(root: ConfigNode) -> None:
    """A root is an empty section without parent."""
    assert root.kind == NodeKind.SECTION
    assert root.name == "root"
    assert root.is_root()
    assert root.parent is None
    assert root.count_children() == 0
    assert root.get_item_index() == -1


def test_create_items(root: ConfigNode) -> None:
    """create_* methods append children in order."""
    root.create_comment("header")
    root.create_blank()
    db = root.create_section("db", {"host": "localhost", "port": 5432})
    user = db.create_directive("user", "admin")

    assert [child.kind for child in root.children] == [
        NodeKind.COMMENT,
        NodeKind.BLANK,
        NodeKind.SECTION,
    ]
    assert db.attributes == {"host": "localhost", "port": "5432"}
    assert user.parent is db
    assert db.parent is root
    assert not user.is_root()


def test_identities_are_unique(root: ConfigNode) -> None:
    """Nodes with identical fields still have distinct identities."""
    a = root.create_directive("x", "1")
    b = root.create_directive("x", "1")
    assert a.identity != b.identity
    assert a.get_item_index() == 0
    assert b.get_item_index() == 1


def test_insert_positions(root: ConfigNode) -> None:
    """Top, bottom, before and after place the item correctly."""
    middle = root.create_directive("middle")
    root.create_directive("first", where=Where.TOP)
    root.create_directive("last", where="bottom")
    root.create_directive("before", where=Where.BEFORE, target=middle)
    root.create_directive("after", where=Where.AFTER, target=middle)

    assert names(root) == ["first", "before", "middle", "after", "last"]


def test_invalid_position(root: ConfigNode) -> None:
    """Unknown positions and missing or foreign targets are rejected."""
    other = ConfigNode.root()
    stranger = other.create_directive("stranger")

    with pytest.raises(InvalidPosition):
        root.create_directive("x", where="middle")
    with pytest.raises(InvalidPosition):
        root.create_directive("x", where=Where.BEFORE)
    with pytest.raises(InvalidPosition):
        root.create_directive("x", where=Where.AFTER, target=stranger)
    assert issubclass(InvalidPosition, ValueError)


def test_add_item_moves_node(root: ConfigNode) -> None:
    """Adding an attached node moves it instead of listing it twice."""
    a = root.create_section("a")
    b = root.create_section("b")
    item = a.create_directive("item", "1")

    b.add_item(item)

    assert a.count_children() == 0
    assert b.children == (item,)
    assert item.parent is b


def test_move_next_to_sibling(root: ConfigNode) -> None:
    """Moving a node after a later sibling keeps the order consistent."""
    one = root.create_directive("one")
    root.create_directive("two")
    three = root.create_directive("three")

    root.add_item(one, Where.AFTER, three)

    assert names(root) == ["two", "three", "one"]
    assert [child.get_item_index() for child in root.children] == [0, 1, 2]


def test_add_item_rejects_cycles(root: ConfigNode) -> None:
    """A section cannot be added below itself."""
    outer = root.create_section("outer")
    inner = outer.create_section("inner")

    with pytest.raises(ContainerError):
        inner.add_item(outer)
    with pytest.raises(ContainerError):
        outer.add_item(outer)


def test_leaf_operations_rejected(root: ConfigNode) -> None:
    """Section-only operations fail on leaves."""
    directive = root.create_directive("x", "1")

    with pytest.raises(NotASection):
        directive.create_directive("y")
    with pytest.raises(NotASection):
        directive.get_item(name="y")
    with pytest.raises(NotASection):
        directive.search_path(["y"])


def test_kind_change_with_children(root: ConfigNode) -> None:
    """A section with children cannot become a leaf."""
    section = root.create_section("s")
    section.create_directive("x")

    with pytest.raises(NotASection):
        section.kind = NodeKind.DIRECTIVE

    empty = root.create_section("empty")
    empty.kind = "directive"
    assert empty.kind == NodeKind.DIRECTIVE


def test_remove_item(root: ConfigNode) -> None:
    """Removal detaches exactly one node and keeps sibling order."""
    root.create_directive("a")
    b = root.create_directive("b")
    root.create_directive("c")

    b.remove_item()

    assert root.count_children() == 2
    assert names(root) == ["a", "c"]
    assert b.parent is None


def test_remove_root(root: ConfigNode) -> None:
    """The root cannot be removed."""
    with pytest.raises(CannotRemoveRoot):
        root.remove_item()


def test_item_position(root: ConfigNode) -> None:
    """Position ranks siblings with the same name."""
    root.create_directive("apps", "imp")
    root.create_section("apps")
    second = root.create_directive("apps", "turbo")

    assert second.get_item_position() == 1
    assert second.get_item_position(by_kind=False) == 2
    assert root.get_item_position() == -1


def test_count_children(root: ConfigNode) -> None:
    """Children can be counted by kind and name."""
    root.create_directive("a")
    root.create_directive("a")
    root.create_section("a")
    root.create_comment("note")

    assert root.count_children() == 4
    assert root.count_children(NodeKind.DIRECTIVE) == 2
    assert root.count_children(name="a") == 3
    assert root.count_children("section", "a") == 1


def test_get_item(root: ConfigNode) -> None:
    """get_item returns the last match, the indexed match or None."""
    first = root.create_directive("host", "a")
    last = root.create_directive("host", "b")
    root.create_section("host", {"zone": "eu"})

    assert root.get_item(NodeKind.DIRECTIVE, "host") is last
    assert root.get_item(NodeKind.DIRECTIVE, "host", index=0) is first
    assert root.get_item(NodeKind.DIRECTIVE, "host", index=5) is None
    assert root.get_item(content="a") is first
    assert root.get_item(attributes={"zone": "eu"}).kind == NodeKind.SECTION
    assert root.get_item(name="missing") is None


def test_search_path(root: ConfigNode) -> None:
    """Paths descend by name and optional attribute filter."""
    db = root.create_section("DB", {"host": "localhost"})
    user = db.create_directive("user", "admin")
    root.create_section("DB", {"host": "remote"})

    assert root.search_path([("DB", {"host": "localhost"}), "user"]) is user
    assert root.search_path([("DB", {"host": "elsewhere"}), "user"]) is None
    assert root.search_path(["DB", "user"]) is None  # last DB has no user
    assert root.search_path([]) is None


def test_directive_content(root: ConfigNode) -> None:
    """Directive content is found by name or path."""
    db = root.create_section("db")
    db.create_directive("user", "admin")
    root.create_directive("debug", "1")

    assert root.directive_content("debug") == "1"
    assert root.directive_content(["db", "user"]) == "admin"
    assert root.directive_content("missing") is None


def test_set_directive(root: ConfigNode) -> None:
    """set_directive updates an existing directive or creates one."""
    existing = root.create_directive("user", "admin")

    updated = root.set_directive("user", "root")
    created = root.set_directive("password", "secret")

    assert updated is existing
    assert existing.content == "root"
    assert created.content == "secret"
    assert root.children[-1] is created


def test_attributes(root: ConfigNode) -> None:
    """Attributes are stored as strings and can be merged."""
    section = root.create_section("s")
    assert section.attributes is None
    assert section.get_attribute("x") is None

    section.update_attributes({"x": 1})
    section.update_attributes({"y": True})

    assert section.attributes == {"x": "1", "y": "True"}
    assert section.get_attribute("x") == "1"


def test_iter_tree(root: ConfigNode) -> None:
    """Traversal is depth first."""
    a = root.create_section("a")
    a.create_directive("a1")
    root.create_directive("b")

    assert [node.name for node in root.iter_tree()] == ["root", "a", "a1", "b"]


def test_to_array_duplicates(root: ConfigNode) -> None:
    """Repeated names collapse into a list instead of overwriting."""
    root.create_directive("apps", "imp")
    root.create_directive("apps", "turbo")
    root.create_directive("apps", "kronolith")
    root.create_comment("ignored")

    assert root.to_array() == {"root": {"apps": ["imp", "turbo", "kronolith"]}}


def test_to_array_attributes(root: ConfigNode) -> None:
    """Attributes export under '@' and attributed directive content under '#'."""
    db = root.create_section("db", {"driver": "sql"})
    db.create_directive("user", "admin", {"type": "varchar"})

    assert root.to_array() == {
        "root": {
            "db": {
                "@": {"driver": "sql"},
                "user": {"#": "admin", "@": {"type": "varchar"}},
            }
        }
    }
    assert root.to_array(include_attributes=False) == {"root": {"db": {"user": "admin"}}}


def test_parent_is_weak() -> None:
    """A node does not keep its parent alive."""
    root = ConfigNode.root()
    section = root.create_section("db")
    assert section.parent is root

    del root
    gc.collect()

    assert section.parent is None
