"""Expected directory tree ("template") used to check submissions.

Nodes are kept in a flat map keyed by id; parents and children reference each
other by id only.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from zip_standardizer.models.errors import TemplateInvalid

WILDCARD = "*"


class NodeKind(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True, slots=True)
class NamePattern:
    """Name pattern of a template node.

    A name holding no ``*`` is literal. A single ``*`` splits the name into a
    prefix and a suffix which must both match within one path segment, so
    ``*`` matches any name, ``settings.gradle*`` any name starting with
    ``settings.gradle`` and ``*.sln`` any name ending with ``.sln``. Names
    holding more than one ``*`` are treated as literals.
    """

    raw: str
    prefix: str
    suffix: str
    is_wildcard: bool

    @classmethod
    def parse(cls, name: str) -> NamePattern:
        if name.count(WILDCARD) != 1:
            return cls(raw=name, prefix=name, suffix="", is_wildcard=False)
        prefix, _, suffix = name.partition(WILDCARD)
        return cls(raw=name, prefix=prefix, suffix=suffix, is_wildcard=True)

    def matches(self, name: str) -> bool:
        if not self.is_wildcard:
            return name == self.raw
        if len(name) < len(self.prefix) + len(self.suffix):
            return False
        return name.startswith(self.prefix) and name.endswith(self.suffix)


@dataclass(slots=True)
class TemplateNode:
    """A file or directory expected in a submission.

    Attributes:
        id: Stable identifier of the node inside its template.
        name: Name pattern (literal or wildcard).
        kind: Whether the node expects a file or a directory.
        path: Parent path joined with ``name``.
        parent_id: Id of the parent directory node, ``None`` for roots.
        children: Ids of child nodes, in display order.
    """

    id: str
    name: str
    kind: NodeKind
    path: str
    parent_id: str | None = None
    children: list[str] = field(default_factory=list)

    @property
    def pattern(self) -> NamePattern:
        return NamePattern.parse(self.name)

    @property
    def is_directory(self) -> bool:
        return self.kind is NodeKind.DIRECTORY


@dataclass(slots=True)
class Template:
    """Expected tree made of an arena of nodes and an ordered list of roots."""

    nodes: dict[str, TemplateNode] = field(default_factory=dict)
    root_ids: list[str] = field(default_factory=list)
    name: str = ""
    description: str = ""

    def add_node(
        self,
        name: str,
        kind: NodeKind | str,
        parent_id: str | None = None,
        node_id: str | None = None,
    ) -> TemplateNode:
        """Create a node and attach it to ``parent_id`` (or as a new root).

        Raises:
            TemplateInvalid: If the parent does not exist or is a file, or the
                id is already taken.
        """
        kind = NodeKind(kind)
        node_id = node_id or uuid.uuid4().hex
        if node_id in self.nodes:
            raise TemplateInvalid(f"Duplicate template node id {node_id!r}")

        if parent_id is None:
            path = name
        else:
            parent = self.nodes.get(parent_id)
            if parent is None:
                raise TemplateInvalid(f"Unknown parent node {parent_id!r}")
            if not parent.is_directory:
                raise TemplateInvalid(f"Parent node {parent_id!r} is not a directory")
            path = f"{parent.path}/{name}"

        node = TemplateNode(id=node_id, name=name, kind=kind, path=path, parent_id=parent_id)
        self.nodes[node_id] = node
        if parent_id is None:
            self.root_ids.append(node_id)
        else:
            self.nodes[parent_id].children.append(node_id)
        return node

    def validate(self) -> None:
        """Check the structural invariants of the template.

        Raises:
            TemplateInvalid: When no root exists, a reference does not resolve,
                a parent is not a directory, links disagree, or a cycle exists.
        """
        if not self.root_ids:
            raise TemplateInvalid("Template has no root nodes")

        for root_id in self.root_ids:
            root = self.nodes.get(root_id)
            if root is None:
                raise TemplateInvalid(f"Root node {root_id!r} does not exist")
            if root.parent_id is not None:
                raise TemplateInvalid(f"Root node {root_id!r} has a parent")

        for node in self.nodes.values():
            if node.parent_id is None:
                continue
            parent = self.nodes.get(node.parent_id)
            if parent is None:
                raise TemplateInvalid(
                    f"Node {node.id!r} references missing parent {node.parent_id!r}"
                )
            if not parent.is_directory:
                raise TemplateInvalid(f"Parent of node {node.id!r} is not a directory")
            if node.id not in parent.children:
                raise TemplateInvalid(f"Node {node.id!r} is not listed by its parent")

        seen: set[str] = set()
        stack = list(self.root_ids)
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                raise TemplateInvalid(f"Cycle detected at node {node_id!r}")
            seen.add(node_id)
            node = self.nodes[node_id]
            for child_id in node.children:
                child = self.nodes.get(child_id)
                if child is None:
                    raise TemplateInvalid(f"Node {node_id!r} references missing child {child_id!r}")
                if child.parent_id != node_id:
                    raise TemplateInvalid(f"Child {child_id!r} does not point back to {node_id!r}")
                stack.append(child_id)

        unreachable = set(self.nodes) - seen
        if unreachable:
            raise TemplateInvalid(f"Nodes not reachable from any root: {sorted(unreachable)}")

    def descendants(self, node_id: str) -> Iterator[TemplateNode]:
        """Yield every node below ``node_id`` depth-first, children in order."""
        for child_id in self.nodes[node_id].children:
            child = self.nodes[child_id]
            yield child
            yield from self.descendants(child_id)
