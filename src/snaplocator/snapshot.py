from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
import re
from typing import Any, Iterator, Mapping
import weakref

_ATTR_KEY_SEPARATORS = re.compile(r"[-_:]")
_ATTR_KEY_ALIASES = {
    "htmlfor": "for",
    "classname": "class",
}


class SnapshotFormatError(ValueError):
    """Raised when a snapshot payload does not have the expected shape."""


def canonical_attr_key(key: str) -> str:
    """Fold ``data-testid`` / ``dataTestid`` / ``data_testid`` onto one key."""
    folded = _ATTR_KEY_SEPARATORS.sub("", key.strip()).lower()
    return _ATTR_KEY_ALIASES.get(folded, folded)


@dataclass(slots=True, weakref_slot=True, eq=False)
class ElementNode:
    """One captured DOM node.

    ``children`` own their nodes; the parent link is a weak reference set
    when the node is attached, so walking upward never keeps a tree alive.
    """

    tag: str | None = None
    id: str | None = None
    class_list: list[str] = field(default_factory=list)
    text: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    uid: str | None = None
    children: list[ElementNode] = field(default_factory=list)
    _parent_ref: weakref.ReferenceType[ElementNode] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.tag:
            self.tag = self.tag.strip().lower() or None
        for child in self.children:
            child._parent_ref = weakref.ref(self)

    @property
    def parent(self) -> ElementNode | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def class_attr(self) -> str:
        return " ".join(self.class_list)

    def attr(self, key: str) -> str | None:
        if key in self.attributes:
            return self.attributes[key]
        wanted = canonical_attr_key(key)
        for name, value in self.attributes.items():
            if canonical_attr_key(name) == wanted:
                return value
        if wanted == "id":
            return self.id
        if wanted == "class" and self.class_list:
            return self.class_attr
        return None

    def ancestors(self, limit: int | None = None) -> Iterator[ElementNode]:
        current = self.parent
        depth = 0
        while current is not None and (limit is None or depth < limit):
            yield current
            current = current.parent
            depth += 1

    def walk(self) -> Iterator[ElementNode]:
        """Depth-first, document-order traversal including this node."""
        stack: list[ElementNode] = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def _own_fields(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.uid is not None:
            payload["uid"] = self.uid
        if self.tag is not None:
            payload["tag"] = self.tag
        if self.id is not None:
            payload["id"] = self.id
        if self.class_list:
            payload["class"] = self.class_attr
        if self.attributes:
            payload["attributes"] = dict(self.attributes)
        if self.text is not None:
            payload["text"] = self.text
        return payload

    def to_dict(self) -> dict[str, Any]:
        root = self._own_fields()
        stack: list[tuple[ElementNode, dict[str, Any]]] = [(self, root)]
        while stack:
            node, payload = stack.pop()
            if node.children:
                children = [child._own_fields() for child in node.children]
                payload["children"] = children
                stack.extend(zip(node.children, children))
        return root

    @classmethod
    def from_dict(cls, payload: Any) -> ElementNode:
        """Build a node tree from its JSON form.

        Nodes are collected parents-first and constructed children-first
        without recursion.
        """
        entries: list[tuple[dict[str, Any], list[int]]] = []
        pending: list[tuple[Any, int | None]] = [(payload, None)]
        while pending:
            raw, parent_index = pending.pop()
            fields, raw_children = _element_fields(raw)
            index = len(entries)
            entries.append((fields, []))
            if parent_index is not None:
                entries[parent_index][1].append(index)
            pending.extend((child, index) for child in reversed(raw_children))

        built: dict[int, ElementNode] = {}
        for index in range(len(entries) - 1, -1, -1):
            fields, child_indexes = entries[index]
            built[index] = cls(children=[built.pop(child) for child in child_indexes], **fields)
        return built[0]


@dataclass(slots=True)
class Snapshot:
    elements: list[ElementNode] = field(default_factory=list)
    url: str | None = None
    timestamp: str | None = None

    def walk(self) -> Iterator[ElementNode]:
        for root in self.elements:
            yield from root.walk()

    def find_by_id(self, element_id: str) -> ElementNode | None:
        for node in self.walk():
            if node.id == element_id:
                return node
        return None

    def find_by_uid(self, uid: str) -> ElementNode | None:
        for node in self.walk():
            if node.uid == uid:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"elements": [root.to_dict() for root in self.elements]}
        if self.url is not None:
            payload["url"] = self.url
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp
        return payload


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _split_classes(raw: Any) -> list[str]:
    # Duplicate tokens are kept as captured.
    if not raw:
        return []
    if isinstance(raw, str):
        return raw.split()
    if isinstance(raw, list):
        return [token for item in raw if isinstance(item, str) for token in item.split()]
    raise SnapshotFormatError("Element class must be a string or an array of strings.")


def _element_fields(payload: Any) -> tuple[dict[str, Any], list[Any]]:
    if not isinstance(payload, Mapping):
        raise SnapshotFormatError(f"Element must be an object, got {type(payload).__name__}.")

    raw_attrs = payload.get("attributes") or {}
    if not isinstance(raw_attrs, Mapping):
        raise SnapshotFormatError("Element attributes must be an object.")
    attributes = {str(key): str(value) for key, value in raw_attrs.items() if value is not None}

    raw_children = payload.get("children") or []
    if not isinstance(raw_children, list):
        raise SnapshotFormatError("Element children must be an array.")

    element_id = payload.get("id")
    if element_id is None:
        element_id = attributes.get("id")
    uid = payload.get("uid")
    if uid is None:
        uid = payload.get("_uid")

    fields = {
        "tag": _optional_str(payload.get("tag")),
        "id": _optional_str(element_id) or None,
        "class_list": _split_classes(payload.get("class", payload.get("className"))),
        "text": _optional_str(payload.get("text")),
        "attributes": attributes,
        "uid": _optional_str(uid),
    }
    return fields, raw_children


def parse_snapshot(payload: Any) -> Snapshot:
    if not isinstance(payload, Mapping):
        raise SnapshotFormatError("Snapshot must be a JSON object.")
    raw_elements = payload.get("elements")
    if raw_elements is None:
        raw_elements = []
    if not isinstance(raw_elements, list):
        raise SnapshotFormatError("Snapshot 'elements' must be an array.")

    return Snapshot(
        elements=[ElementNode.from_dict(item) for item in raw_elements],
        url=_optional_str(payload.get("url")),
        timestamp=_optional_str(payload.get("timestamp")),
    )


def load_snapshot(path: Path) -> Snapshot:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise SnapshotFormatError(f"Could not read snapshot file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(f"Snapshot file {path} is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise SnapshotFormatError(f"Snapshot file {path} is nested too deeply to decode.") from exc
    return parse_snapshot(payload)


def find_element_by_uid(snapshot: Snapshot, uid: str) -> ElementNode | None:
    return snapshot.find_by_uid(uid)
