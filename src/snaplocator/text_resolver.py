"""Text facets of a captured element.

Visible text in component frameworks is often fragmented across nested
inline elements, and labels may live on an ancestor, on a sibling ``label``
or behind an ``aria-labelledby`` reference. Every function here only reads
the snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_CONFIG, LocatorConfig
from .models import LocatorGenerationOptions
from .selector_rules import normalize_space
from .snapshot import ElementNode, Snapshot


@dataclass(frozen=True, slots=True)
class TextFacets:
    deep_text: str | None
    label_text: str | None
    placeholder_text: str | None
    aggregated_text: str | None


def extract_deep_text(node: ElementNode) -> str:
    parts: list[str] = []
    for current in node.walk():
        text = (current.text or "").strip()
        if text:
            parts.append(text)
    return normalize_space(" ".join(parts))


def aggregate_span_text(node: ElementNode) -> str:
    """Rebuild text that renders as one run but is split across spans.

    A ``span`` contributes its whole deep text as a single piece and is not
    descended into again; other elements contribute their own text and then
    their children.
    """
    parts: list[str] = []

    def collect(current: ElementNode) -> None:
        if current.tag == "span":
            span_text = extract_deep_text(current)
            if span_text:
                parts.append(span_text)
            return
        text = (current.text or "").strip()
        if text:
            parts.append(text)
        for child in current.children:
            collect(child)

    collect(node)
    return normalize_space(" ".join(parts))


def find_element_by_id(element_id: str, snapshot: Snapshot) -> ElementNode | None:
    return snapshot.find_by_id(element_id)


def find_label_for(element_id: str, snapshot: Snapshot) -> ElementNode | None:
    if not element_id:
        return None
    for node in snapshot.walk():
        if node.tag == "label" and node.attr("for") == element_id:
            return node
    return None


def _labelledby_text(reference: str, snapshot: Snapshot) -> str | None:
    target = find_element_by_id(reference, snapshot)
    if target is not None:
        return extract_deep_text(target) or None

    # aria-labelledby may list several ids.
    ids = reference.split()
    if len(ids) < 2:
        return None
    chunks: list[str] = []
    for ref in ids:
        node = find_element_by_id(ref, snapshot)
        if node is None:
            continue
        text = extract_deep_text(node)
        if text:
            chunks.append(text)
    return " ".join(chunks) or None


def extract_label_text(
    node: ElementNode,
    snapshot: Snapshot,
    max_depth: int = DEFAULT_CONFIG.label_ancestor_depth,
) -> str | None:
    aria_label = (node.attr("aria-label") or "").strip()
    if aria_label:
        return aria_label

    labelled_by = (node.attr("aria-labelledby") or "").strip()
    if labelled_by:
        text = _labelledby_text(labelled_by, snapshot)
        if text:
            return text

    if node.id:
        label = find_label_for(node.id, snapshot)
        if label is not None:
            text = extract_deep_text(label)
            if text:
                return text

    for ancestor in node.ancestors(limit=max_depth):
        if ancestor.tag == "label":
            text = extract_deep_text(ancestor)
            if text:
                return text
        if not node.id:
            continue
        for sibling in ancestor.children:
            if sibling.tag == "label" and sibling.attr("for") == node.id:
                text = extract_deep_text(sibling)
                if text:
                    return text

    return None


def find_nested_label(
    node: ElementNode,
    snapshot: Snapshot,
    max_depth: int = DEFAULT_CONFIG.label_ancestor_depth,
) -> ElementNode | None:
    if extract_label_text(node, snapshot, max_depth=max_depth) is None:
        return None

    if node.id:
        label = find_label_for(node.id, snapshot)
        if label is not None:
            return label

    for ancestor in node.ancestors(limit=max_depth):
        if ancestor.tag == "label":
            return ancestor
    return None


def extract_placeholder_text(
    node: ElementNode,
    max_depth: int = DEFAULT_CONFIG.placeholder_ancestor_depth,
) -> str | None:
    for key in ("placeholder", "aria-placeholder"):
        value = (node.attr(key) or "").strip()
        if value:
            return value

    for ancestor in node.ancestors(limit=max_depth):
        value = (ancestor.attr("placeholder") or "").strip()
        if value:
            return value
    return None


def resolve_text_facets(
    node: ElementNode,
    snapshot: Snapshot,
    options: LocatorGenerationOptions | None = None,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> TextFacets:
    opts = options or LocatorGenerationOptions()
    if opts.extract_deep_text:
        deep_text = extract_deep_text(node) or None
        label_text = extract_label_text(node, snapshot, max_depth=config.label_ancestor_depth)
        placeholder_text = extract_placeholder_text(node, max_depth=config.placeholder_ancestor_depth)
    else:
        deep_text = label_text = placeholder_text = None
    aggregated_text = (aggregate_span_text(node) or None) if opts.aggregate_span_text else None
    return TextFacets(
        deep_text=deep_text,
        label_text=label_text,
        placeholder_text=placeholder_text,
        aggregated_text=aggregated_text,
    )
