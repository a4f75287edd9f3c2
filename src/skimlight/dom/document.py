"""Arena-backed document tree with integer node handles.

The page is held as a flat store of nodes keyed by ``NodeId``.  Parent and
child links are handles, never object references, so a handle held by the
highlight registry stays meaningful across structural edits: it either still
resolves to the same node, resolves to a node that has been detached from the
tree, or no longer resolves at all (the node was released).

Parsing uses selectolax's Lexbor parser, walking ``child``/``next`` links
(which expose text nodes) the same way the HTML input pipeline does.
"""

# Pattern: Imperative Shell (all tree mutation goes through Document methods)

from __future__ import annotations

import html as html_module
import itertools
import logging
from collections.abc import Collection, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from selectolax.lexbor import LexborHTMLParser

logger = logging.getLogger(__name__)

type NodeId = int

# Elements whose text never renders on the page
INVISIBLE_TAGS = frozenset(("script", "style", "noscript", "template"))

# Raw text elements: content is serialised without entity escaping
_RAW_TEXT_TAGS = frozenset(("script", "style"))

_VOID_TAGS = frozenset(
    (
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    )
)


class DetachedAnchorError(LookupError):
    """A node handle no longer points at a node attached to the document."""

    def __init__(self, node: NodeId, reason: str = "node is not attached") -> None:
        self.node = node
        self.reason = reason
        super().__init__(f"Node {node}: {reason}")


class NodeKind(Enum):
    ELEMENT = "element"
    TEXT = "text"


@dataclass
class Node:
    """A single entry in the document arena.

    Attributes:
        kind: Element or text.
        tag: Lower-case tag name (empty for text nodes).
        attrs: Element attributes in source order; ``None`` for bare attributes.
        text: Character data (text nodes only).
        parent: Handle of the parent element, or None when detached.
        children: Child handles in document order.
    """

    kind: NodeKind
    tag: str = ""
    attrs: dict[str, str | None] = field(default_factory=dict)
    text: str = ""
    parent: NodeId | None = None
    children: list[NodeId] = field(default_factory=list)


class Document:
    """A mutable document tree addressed by integer handles."""

    def __init__(self, root_tag: str = "html") -> None:
        self._nodes: dict[NodeId, Node] = {}
        self._ids = itertools.count(1)
        self.root = self.create_element(root_tag)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_html(cls, html: str) -> Document:
        """Parse HTML into a new document.

        Doctype and comments are dropped.  A fragment is wrapped by the
        parser in ``<html><head></head><body>...</body></html>``.
        """
        tree = LexborHTMLParser(html or "")
        document = cls()
        parsed_root = tree.root
        if parsed_root is None:
            document.append_child(document.root, document.create_element("body"))
            return document

        document._nodes[document.root].attrs = dict(parsed_root.attributes)
        child = parsed_root.child
        while child is not None:
            document._import(child, document.root)
            child = child.next
        return document

    def _import(self, source: Any, parent: NodeId) -> None:
        tag = source.tag
        if tag == "-text":
            text = source.text_content
            if text:
                self.append_child(parent, self.create_text(text))
            return
        # Comments ("_comment") and other non-element nodes
        if not tag or tag[0] in "_-!":
            return

        element = self.create_element(tag, dict(source.attributes))
        self.append_child(parent, element)
        child = source.child
        while child is not None:
            self._import(child, element)
            child = child.next

    def create_element(
        self, tag: str, attrs: dict[str, str | None] | None = None
    ) -> NodeId:
        """Create a detached element and return its handle."""
        node_id = next(self._ids)
        self._nodes[node_id] = Node(
            kind=NodeKind.ELEMENT, tag=tag.lower(), attrs=dict(attrs or {})
        )
        return node_id

    def create_text(self, text: str) -> NodeId:
        """Create a detached text node and return its handle."""
        node_id = next(self._ids)
        self._nodes[node_id] = Node(kind=NodeKind.TEXT, text=text)
        return node_id

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def __contains__(self, node: object) -> bool:
        return node in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def _get(self, node: NodeId) -> Node:
        try:
            return self._nodes[node]
        except KeyError:
            raise DetachedAnchorError(node, "node has been released") from None

    @property
    def body(self) -> NodeId:
        """The ``<body>`` element, or the root when the tree has none."""
        for child in self._get(self.root).children:
            entry = self._nodes[child]
            if entry.kind is NodeKind.ELEMENT and entry.tag == "body":
                return child
        return self.root

    def is_text(self, node: NodeId) -> bool:
        return self._get(node).kind is NodeKind.TEXT

    def is_element(self, node: NodeId) -> bool:
        return self._get(node).kind is NodeKind.ELEMENT

    def tag(self, node: NodeId) -> str:
        return self._get(node).tag

    def text(self, node: NodeId) -> str:
        """Character data of a text node (empty for elements)."""
        return self._get(node).text

    def set_text(self, node: NodeId, text: str) -> None:
        entry = self._get(node)
        if entry.kind is not NodeKind.TEXT:
            msg = f"Node {node} is not a text node"
            raise TypeError(msg)
        entry.text = text

    def parent(self, node: NodeId) -> NodeId | None:
        return self._get(node).parent

    def children(self, node: NodeId) -> tuple[NodeId, ...]:
        return tuple(self._get(node).children)

    def get_attribute(self, node: NodeId, name: str) -> str | None:
        return self._get(node).attrs.get(name)

    def set_attribute(self, node: NodeId, name: str, value: str | None) -> None:
        self._get(node).attrs[name] = value

    def remove_attribute(self, node: NodeId, name: str) -> None:
        self._get(node).attrs.pop(name, None)

    def has_class(self, node: NodeId, name: str) -> bool:
        return name in (self.get_attribute(node, "class") or "").split()

    def add_class(self, node: NodeId, name: str) -> None:
        classes = (self.get_attribute(node, "class") or "").split()
        if name not in classes:
            classes.append(name)
            self.set_attribute(node, "class", " ".join(classes))

    def remove_class(self, node: NodeId, name: str) -> None:
        classes = (self.get_attribute(node, "class") or "").split()
        if name in classes:
            classes.remove(name)
            self.set_attribute(node, "class", " ".join(classes))

    def text_content(self, node: NodeId) -> str:
        """Concatenated character data of *node* and all its descendants."""
        entry = self._get(node)
        if entry.kind is NodeKind.TEXT:
            return entry.text
        return "".join(self.text_content(child) for child in entry.children)

    # ------------------------------------------------------------------
    # Ancestry
    # ------------------------------------------------------------------

    def ancestors(self, node: NodeId) -> Iterator[NodeId]:
        """Yield *node* and then each ancestor up to the top of its tree."""
        current: NodeId | None = node
        while current is not None:
            yield current
            current = self._get(current).parent

    def is_attached(self, node: NodeId) -> bool:
        """True when *node* exists and its ancestor chain reaches the root."""
        if node not in self._nodes:
            return False
        current = node
        while (parent := self._nodes[current].parent) is not None:
            current = parent
        return current == self.root

    def is_descendant_of_any(self, node: NodeId, roots: Collection[NodeId]) -> bool:
        """True when *node* or any of its ancestors is one of *roots*.

        Walks the live parent chain on every call; results are never cached
        because the tree can change between calls.
        """
        if not roots:
            return False
        return any(current in roots for current in self.ancestors(node))

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def iter_descendants(self, node: NodeId) -> Iterator[NodeId]:
        """Yield descendants of *node* in document order (pre-order).

        The tree must not be mutated while the iterator is live; callers
        that mutate materialise the sequence first.
        """
        stack = list(reversed(self._get(node).children))
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self._nodes[current].children))

    def iter_text_nodes(
        self, node: NodeId, *, skip_tags: Collection[str] = INVISIBLE_TAGS
    ) -> Iterator[NodeId]:
        """Yield text nodes under *node* in document order.

        Subtrees rooted at an element whose tag is in *skip_tags* are not
        entered.
        """
        stack = list(reversed(self._get(node).children))
        while stack:
            current = stack.pop()
            entry = self._nodes[current]
            if entry.kind is NodeKind.TEXT:
                yield current
            elif entry.tag not in skip_tags:
                stack.extend(reversed(entry.children))

    def find_elements(
        self, attribute: str, value: str | None = None, *, root: NodeId | None = None
    ) -> list[NodeId]:
        """Return elements carrying *attribute*, optionally equal to *value*."""
        found: list[NodeId] = []
        for current in self.iter_descendants(self.root if root is None else root):
            entry = self._nodes[current]
            if entry.kind is not NodeKind.ELEMENT or attribute not in entry.attrs:
                continue
            if value is None or entry.attrs[attribute] == value:
                found.append(current)
        return found

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def detach(self, node: NodeId) -> None:
        """Remove *node* from its parent; a no-op when already detached."""
        entry = self._get(node)
        if entry.parent is None:
            return
        self._nodes[entry.parent].children.remove(node)
        entry.parent = None

    def append_child(self, parent: NodeId, child: NodeId) -> None:
        self._check_insertable(parent, child)
        self.detach(child)
        self._get(parent).children.append(child)
        self._nodes[child].parent = parent

    def insert_before(
        self, parent: NodeId, child: NodeId, reference: NodeId | None
    ) -> None:
        """Insert *child* before *reference* (append when reference is None)."""
        if reference is None:
            self.append_child(parent, child)
            return
        self._check_insertable(parent, child)
        self.detach(child)
        siblings = self._get(parent).children
        try:
            index = siblings.index(reference)
        except ValueError:
            raise DetachedAnchorError(reference, "reference is not a child") from None
        siblings.insert(index, child)
        self._nodes[child].parent = parent

    def replace_with(self, node: NodeId, replacements: Sequence[NodeId]) -> None:
        """Replace *node* with *replacements*, in order, as one structural edit.

        The original node is detached; its former parent owns the
        replacements at the position it occupied.

        Raises:
            DetachedAnchorError: If *node* has no parent.
        """
        entry = self._get(node)
        parent = entry.parent
        if parent is None:
            raise DetachedAnchorError(node)
        for replacement in replacements:
            self._check_insertable(parent, replacement)
            self.detach(replacement)

        siblings = self._nodes[parent].children
        index = siblings.index(node)
        siblings[index : index + 1] = list(replacements)
        entry.parent = None
        for replacement in replacements:
            self._nodes[replacement].parent = parent

    def release(self, node: NodeId) -> None:
        """Drop a detached subtree from the arena.

        Handles into the released subtree stop resolving.
        """
        entry = self._get(node)
        if entry.parent is not None:
            msg = f"Node {node} is still attached to {entry.parent}"
            raise ValueError(msg)
        for current in [node, *self.iter_descendants(node)]:
            del self._nodes[current]

    def normalize(self, node: NodeId) -> None:
        """Merge adjacent text nodes and drop empty ones under *node*.

        Mirrors DOM ``Node.normalize()``: the first text node of each run
        absorbs its following text siblings.
        """
        entry = self._get(node)
        if entry.kind is NodeKind.TEXT:
            return

        merged: list[NodeId] = []
        for child in entry.children:
            child_entry = self._nodes[child]
            if child_entry.kind is NodeKind.TEXT:
                if not child_entry.text:
                    self._drop_child(child)
                    continue
                if merged and self._nodes[merged[-1]].kind is NodeKind.TEXT:
                    self._nodes[merged[-1]].text += child_entry.text
                    self._drop_child(child)
                    continue
            else:
                self.normalize(child)
            merged.append(child)
        entry.children = merged

    def _drop_child(self, child: NodeId) -> None:
        self._nodes[child].parent = None
        del self._nodes[child]

    def _check_insertable(self, parent: NodeId, child: NodeId) -> None:
        if self._get(parent).kind is not NodeKind.ELEMENT:
            msg = f"Node {parent} is a text node and cannot have children"
            raise TypeError(msg)
        self._get(child)
        if any(current == child for current in self.ancestors(parent)):
            msg = f"Cannot insert node {child} into its own subtree"
            raise ValueError(msg)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_html(self, node: NodeId | None = None) -> str:
        """Serialise *node* (default: the whole document) to HTML."""
        if node is None:
            return "<!DOCTYPE html>" + self.to_html(self.root)
        parts: list[str] = []
        self._serialise(node, parts, raw=False)
        return "".join(parts)

    def inner_html(self, node: NodeId) -> str:
        parts: list[str] = []
        raw = self._get(node).tag in _RAW_TEXT_TAGS
        for child in self._get(node).children:
            self._serialise(child, parts, raw=raw)
        return "".join(parts)

    def _serialise(self, node: NodeId, parts: list[str], *, raw: bool) -> None:
        entry = self._nodes[node]
        if entry.kind is NodeKind.TEXT:
            text = entry.text if raw else html_module.escape(entry.text, quote=False)
            parts.append(text)
            return

        parts.append(f"<{entry.tag}")
        for name, value in entry.attrs.items():
            if value is None:
                parts.append(f" {name}")
            else:
                parts.append(f' {name}="{html_module.escape(value, quote=True)}"')
        parts.append(">")
        if entry.tag in _VOID_TAGS:
            return
        child_raw = entry.tag in _RAW_TEXT_TAGS
        for child in entry.children:
            self._serialise(child, parts, raw=child_raw)
        parts.append(f"</{entry.tag}>")
