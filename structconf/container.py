"""
Tree model for structured configuration documents.

A document is a tree of ConfigNode objects. Sections hold ordered children;
directives, comments and blank lines are leaves. Child order is the order in
which drivers render the document.

Example:
    root = ConfigNode.root()
    db = root.create_section("DB", {"host": "localhost"})
    db.create_directive("user", "admin")
    root.search_path([("DB", {"host": "localhost"}), "user"]).content
    # -> "admin"
"""

from __future__ import annotations

import itertools
import weakref
from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .const import ROOT_NAME

if TYPE_CHECKING:
    from .drivers.base import Driver


class NodeKind(Enum):
    """Closed set of node kinds."""

    SECTION = "section"
    DIRECTIVE = "directive"
    COMMENT = "comment"
    BLANK = "blank"


class Where(Enum):
    """Insertion position for new children."""

    TOP = "top"
    BOTTOM = "bottom"
    BEFORE = "before"
    AFTER = "after"


class ContainerError(Exception):
    """Base exception for structural misuse of the tree."""

    pass


class NotASection(ContainerError):
    """Raised when a section-only operation is called on a leaf node."""

    pass


class CannotRemoveRoot(ContainerError):
    """Raised when remove_item() is called on a node without a parent."""

    pass


class InvalidPosition(ContainerError, ValueError):
    """Raised for an unusable insertion position or target."""

    pass


# Search hop: a bare name or (name, attribute filter)
PathHop = str | tuple[str, Mapping[str, Any] | None]

_identities = itertools.count(1)


def _coerce_attributes(attributes: Mapping[Any, Any] | None) -> dict[str, str] | None:
    if attributes is None:
        return None
    return {str(key): str(value) for key, value in attributes.items()}


class ConfigNode:
    """
    A single node of a configuration tree.

    Nodes are created through a parent section's create_* methods, mutated
    in place through their properties, and destroyed with remove_item().
    """

    def __init__(
        self,
        kind: NodeKind | str = NodeKind.SECTION,
        name: str = "",
        content: str = "",
        attributes: Mapping[Any, Any] | None = None,
    ):
        self._kind = NodeKind(kind)
        self._name = name or ""
        self._content = content or ""
        self._attributes = _coerce_attributes(attributes)
        self._children: list[ConfigNode] = []
        self._parent_ref: weakref.ref[ConfigNode] | None = None
        self._identity = next(_identities)

    @classmethod
    def root(cls) -> ConfigNode:
        """Create an empty root section."""
        return cls(NodeKind.SECTION, ROOT_NAME)

    def __repr__(self) -> str:
        if self._kind == NodeKind.SECTION:
            return f"ConfigNode(section {self._name!r}, children={len(self._children)})"
        return f"ConfigNode({self._kind.value} {self._name!r}, {self._content!r})"

    # Fields

    @property
    def identity(self) -> int:
        return self._identity

    @property
    def kind(self) -> NodeKind:
        return self._kind

    @kind.setter
    def kind(self, kind: NodeKind | str) -> None:
        kind = NodeKind(kind)
        if kind != NodeKind.SECTION and self._children:
            raise NotASection(
                f"Cannot turn section {self._name!r} into a {kind.value}: it still has children"
            )
        self._kind = kind

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, name: str) -> None:
        self._name = name

    @property
    def content(self) -> str:
        return self._content

    @content.setter
    def content(self, content: str) -> None:
        self._content = content

    @property
    def attributes(self) -> dict[str, str] | None:
        return self._attributes

    @attributes.setter
    def attributes(self, attributes: Mapping[Any, Any] | None) -> None:
        self._attributes = _coerce_attributes(attributes)

    def get_attribute(self, key: str) -> str | None:
        """Get one attribute value or None."""
        if not self._attributes:
            return None
        return self._attributes.get(key)

    def update_attributes(self, attributes: Mapping[Any, Any]) -> None:
        """Merge the given attributes into the existing ones."""
        if self._attributes is None:
            self._attributes = {}
        self._attributes.update(_coerce_attributes(attributes) or {})

    @property
    def parent(self) -> ConfigNode | None:
        """
        Section holding this node, or None for a root.

        The link is a weak reference: a node does not keep its parent alive.
        Once nothing references the top of a tree, its nodes lose their
        parent, so keep the root referenced while working on descendants.
        """
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def children(self) -> tuple[ConfigNode, ...]:
        return tuple(self._children)

    def get_child(self, index: int = 0) -> ConfigNode | None:
        """Get the child at index, or None if there is none."""
        if 0 <= index < len(self._children):
            return self._children[index]
        return None

    def is_root(self) -> bool:
        """True for a node without a parent."""
        return self.parent is None

    def _require_section(self, operation: str) -> None:
        if self._kind != NodeKind.SECTION:
            raise NotASection(
                f"ConfigNode.{operation} must be called on a section, not a {self._kind.value}"
            )

    # Creation

    def create_item(
        self,
        kind: NodeKind | str,
        name: str = "",
        content: str = "",
        attributes: Mapping[Any, Any] | None = None,
        where: Where | str = Where.BOTTOM,
        target: ConfigNode | None = None,
    ) -> ConfigNode:
        """Build a new child node and insert it at the requested position."""
        item = ConfigNode(kind, name, content, attributes)
        return self.add_item(item, where, target)

    def create_section(
        self,
        name: str,
        attributes: Mapping[Any, Any] | None = None,
        where: Where | str = Where.BOTTOM,
        target: ConfigNode | None = None,
    ) -> ConfigNode:
        return self.create_item(NodeKind.SECTION, name, "", attributes, where, target)

    def create_directive(
        self,
        name: str,
        content: str = "",
        attributes: Mapping[Any, Any] | None = None,
        where: Where | str = Where.BOTTOM,
        target: ConfigNode | None = None,
    ) -> ConfigNode:
        return self.create_item(NodeKind.DIRECTIVE, name, content, attributes, where, target)

    def create_comment(
        self,
        content: str = "",
        where: Where | str = Where.BOTTOM,
        target: ConfigNode | None = None,
    ) -> ConfigNode:
        return self.create_item(NodeKind.COMMENT, "", content, None, where, target)

    def create_blank(
        self,
        where: Where | str = Where.BOTTOM,
        target: ConfigNode | None = None,
    ) -> ConfigNode:
        return self.create_item(NodeKind.BLANK, "", "", None, where, target)

    def add_item(
        self,
        item: ConfigNode,
        where: Where | str = Where.BOTTOM,
        target: ConfigNode | None = None,
    ) -> ConfigNode:
        """
        Insert an existing node into this section.

        A node that already belongs to another section is moved, so it is
        never listed twice.

        Args:
            item: Node to insert
            where: top, bottom, before or after
            target: Sibling to insert before/after (required for those)

        Returns:
            The inserted node
        """
        self._require_section("add_item")

        try:
            where = Where(where)
        except ValueError:
            raise InvalidPosition(
                f"Use only top, bottom, before or after, got {where!r}"
            ) from None

        ancestor: ConfigNode | None = self
        while ancestor is not None:
            if ancestor is item:
                raise ContainerError("Cannot add a node into its own subtree")
            ancestor = ancestor.parent

        if where in (Where.BEFORE, Where.AFTER):
            if target is None:
                raise InvalidPosition(f"Position {where.value!r} requires a target node")
            if target.parent is not self:
                raise InvalidPosition("Target node is not a child of this section")

        if item.parent is not None:
            item.remove_item()

        # Index is resolved after detaching: moving a sibling shifts target
        if where == Where.TOP:
            index = 0
        elif where == Where.BOTTOM:
            index = len(self._children)
        elif where == Where.BEFORE:
            index = target.get_item_index()
        else:
            index = target.get_item_index() + 1

        self._children.insert(index, item)
        item._parent_ref = weakref.ref(self)
        return item

    # Position

    def get_item_index(self) -> int:
        """Index of this node in its parent's children, -1 for the root."""
        parent = self.parent
        if parent is None:
            return -1
        for i, child in enumerate(parent._children):
            if child._identity == self._identity:
                return i
        return -1

    def get_item_position(self, by_kind: bool = True) -> int:
        """
        Rank of this node among siblings sharing its name.

        With by_kind, only siblings of the same kind are counted.
        """
        parent = self.parent
        if parent is None:
            return -1
        rank = 0
        for child in parent._children:
            if child._name != self._name:
                continue
            if by_kind and child._kind != self._kind:
                continue
            if child._identity == self._identity:
                return rank
            rank += 1
        return -1

    def remove_item(self) -> None:
        """Detach this node from its parent section."""
        parent = self.parent
        if parent is None:
            raise CannotRemoveRoot("Cannot remove a root node")
        index = self.get_item_index()
        del parent._children[index]
        self._parent_ref = None

    # Lookup

    def count_children(self, kind: NodeKind | str | None = None, name: str | None = None) -> int:
        """Count direct children matching the given kind and/or name."""
        if kind is None and name is None:
            return len(self._children)
        kind = NodeKind(kind) if kind is not None else None
        count = 0
        for child in self._children:
            if kind is not None and child._kind != kind:
                continue
            if name is not None and child._name != name:
                continue
            count += 1
        return count

    def _matches(
        self,
        kind: NodeKind | None,
        name: str | None,
        content: str | None,
        attributes: Mapping[str, Any] | None,
    ) -> bool:
        if kind is not None and self._kind != kind:
            return False
        if name is not None and self._name != name:
            return False
        if content is not None and self._content != content:
            return False
        if attributes is not None:
            own = self._attributes or {}
            for key, value in attributes.items():
                if key not in own or own[key] != str(value):
                    return False
        return True

    def get_item(
        self,
        kind: NodeKind | str | None = None,
        name: str | None = None,
        content: str | None = None,
        attributes: Mapping[str, Any] | None = None,
        index: int = -1,
    ) -> ConfigNode | None:
        """
        Find a direct child matching every supplied filter.

        Filters left as None are ignored. The attribute filter matches when
        each of its pairs is present on the child.

        Returns:
            The match at index, the last match when index is -1,
            or None when nothing matches
        """
        self._require_section("get_item")
        kind = NodeKind(kind) if kind is not None else None

        matches = [
            child
            for child in self._children
            if child._matches(kind, name, content, attributes)
        ]

        if index >= 0:
            return matches[index] if index < len(matches) else None
        return matches[-1] if matches else None

    def search_path(self, path: Sequence[PathHop]) -> ConfigNode | None:
        """
        Walk down the tree one hop per level.

        Each hop is a name or a (name, attributes) pair; the last match of
        a hop is descended into.
        """
        self._require_section("search_path")
        if not path:
            return None

        hop, rest = path[0], path[1:]
        if isinstance(hop, (tuple, list)):
            name, attributes = hop
        else:
            name, attributes = hop, None

        match = self.get_item(None, name, None, attributes)
        if match is None:
            return None
        if rest:
            return match.search_path(rest)
        return match

    def directive_content(self, path: Sequence[PathHop] | str, index: int = -1) -> str | None:
        """Content of a directive found by path or by name, None if missing."""
        if isinstance(path, str):
            item = self.get_item(NodeKind.DIRECTIVE, path, None, None, index)
        else:
            item = self.search_path(path)
        if item is None:
            return None
        return item.content

    def set_directive(self, name: str, content: str, index: int = -1) -> ConfigNode:
        """Update a child directive, creating it at the bottom if missing."""
        item = self.get_item(NodeKind.DIRECTIVE, name, None, None, index)
        if item is None:
            return self.create_directive(name, content)
        item.content = content
        return item

    def iter_tree(self) -> Iterator[ConfigNode]:
        """Traverse depth-first, yielding self then descendants."""
        yield self
        for child in self._children:
            yield from child.iter_tree()

    # Export

    def to_array(self, include_attributes: bool = True) -> dict[str, Any]:
        """
        Export as nested mappings.

        A directive becomes name -> content, or name -> {"#": content,
        "@": attributes} when it has attributes. Sections merge their
        children; repeated names collapse into a list.
        """
        if self._kind == NodeKind.DIRECTIVE:
            if include_attributes and self._attributes:
                return {self._name: {"#": self._content, "@": dict(self._attributes)}}
            return {self._name: self._content}

        if self._kind != NodeKind.SECTION:
            return {}

        body: dict[str, Any] = {}
        if include_attributes and self._attributes:
            body["@"] = dict(self._attributes)

        for child in self._children:
            for key, value in child.to_array(include_attributes).items():
                if key not in body:
                    body[key] = value
                elif isinstance(body[key], list):
                    body[key].append(value)
                else:
                    body[key] = [body[key], value]

        return {self._name: body}

    # Rendering

    def to_string(self, driver: Driver) -> str:
        """Render this node with the given driver."""
        return driver.render(self)

    def write(self, path: str | Path, driver: Driver) -> None:
        """Render this node with the given driver and write it to path."""
        driver.write(path, self)
