from __future__ import annotations

import re
from typing import Iterator

from .config import DEFAULT_CONFIG
from .models import ComponentFramework
from .snapshot import ElementNode

SPECTRA_ID_PATTERN = re.compile(r"^sp-")
SPECTRA_CLASS_PATTERN = re.compile(r"^(?:sp-|oj-spectra-|spectra-)")
SPECTRA_ATTR_KEY_PATTERN = re.compile(r"^(?:sp-|data-spectra-)")
SPECTRA_ATTR_VALUE_PATTERN = re.compile(r"^sp-")
SPECTRA_TAG_PATTERN = re.compile(r"^sp-")

JET_PREFIX_PATTERN = re.compile(r"^oj-")
JET_EXCLUDED_PATTERN = re.compile(r"^oj-(?:spectra|redwood)-")
JET_ATTR_KEY_PATTERN = re.compile(r"^data-oj-")

REDWOOD_CLASS_PATTERN = re.compile(r"^(?:oj-redwood-|redwood-)")
REDWOOD_ATTR_KEY_PATTERN = re.compile(r"^redwood-")
REDWOOD_ATTR_VALUE_PATTERN = re.compile(r"redwood")

# Class prefixes used when building framework class selectors.
_SPECTRA_SELECTOR_CLASS = re.compile(r"^(?:sp-|oj-spectra-)")
_REDWOOD_SELECTOR_CLASS = re.compile(r"^oj-redwood-")


def is_jet_token(token: str) -> bool:
    return bool(JET_PREFIX_PATTERN.match(token)) and not JET_EXCLUDED_PATTERN.match(token)


def has_spectra_indicators(node: ElementNode) -> bool:
    if node.id and SPECTRA_ID_PATTERN.match(node.id):
        return True
    if any(SPECTRA_CLASS_PATTERN.match(token) for token in node.class_list):
        return True
    if any(SPECTRA_ATTR_KEY_PATTERN.match(key) for key in node.attributes):
        return True
    if any(SPECTRA_ATTR_VALUE_PATTERN.match(value) for value in node.attributes.values()):
        return True
    return bool(node.tag and SPECTRA_TAG_PATTERN.match(node.tag))


def has_jet_indicators(node: ElementNode) -> bool:
    if any(is_jet_token(token) for token in node.class_list):
        return True
    if any(JET_ATTR_KEY_PATTERN.match(key) for key in node.attributes):
        return True
    return bool(node.tag and is_jet_token(node.tag))


def has_redwood_indicators(node: ElementNode) -> bool:
    if any(REDWOOD_CLASS_PATTERN.match(token) for token in node.class_list):
        return True
    if any(REDWOOD_ATTR_KEY_PATTERN.match(key) for key in node.attributes):
        return True
    return any(REDWOOD_ATTR_VALUE_PATTERN.search(value) for value in node.attributes.values())


def _self_and_ancestors(node: ElementNode, max_depth: int) -> Iterator[ElementNode]:
    yield node
    yield from node.ancestors(limit=max_depth)


def detect_component_framework(
    node: ElementNode,
    max_depth: int = DEFAULT_CONFIG.framework_ancestor_depth,
) -> ComponentFramework:
    """Classify the component family owning ``node``.

    Each family is searched across the element and up to ``max_depth``
    ancestors, and Spectra beats JET beats Redwood: a JET widget anywhere
    below a Spectra section classifies as Spectra.
    """
    if is_spectra_component(node, max_depth):
        return ComponentFramework.SPECTRA
    if is_jet_component(node, max_depth):
        return ComponentFramework.JET
    if is_redwood_component(node, max_depth):
        return ComponentFramework.REDWOOD
    return ComponentFramework.HTML


def is_spectra_component(node: ElementNode, max_depth: int = DEFAULT_CONFIG.framework_ancestor_depth) -> bool:
    return any(has_spectra_indicators(current) for current in _self_and_ancestors(node, max_depth))


def is_jet_component(node: ElementNode, max_depth: int = DEFAULT_CONFIG.framework_ancestor_depth) -> bool:
    return any(has_jet_indicators(current) for current in _self_and_ancestors(node, max_depth))


def is_redwood_component(node: ElementNode, max_depth: int = DEFAULT_CONFIG.framework_ancestor_depth) -> bool:
    return any(has_redwood_indicators(current) for current in _self_and_ancestors(node, max_depth))


def framework_classes(class_list: list[str], framework: ComponentFramework) -> list[str]:
    tokens = [token for token in class_list if token.strip()]
    if framework is ComponentFramework.SPECTRA:
        return [token for token in tokens if _SPECTRA_SELECTOR_CLASS.match(token)]
    if framework is ComponentFramework.JET:
        return [token for token in tokens if is_jet_token(token)]
    if framework is ComponentFramework.REDWOOD:
        return [token for token in tokens if _REDWOOD_SELECTOR_CLASS.match(token)]
    if framework is ComponentFramework.HTML:
        return []
    raise ValueError(f"Unhandled component framework: {framework!r}")
