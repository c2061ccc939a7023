from __future__ import annotations

import logging
import re

from .config import DEFAULT_CONFIG, LocatorConfig
from .framework_detector import detect_component_framework, framework_classes
from .models import (
    ComponentFramework,
    GeneratedLocators,
    LocatorGenerationOptions,
    SelectorCandidate,
)
from .selector_rules import (
    TEST_ID_ATTRIBUTES,
    escape_css_value,
    is_css_safe_id,
    is_stable_id,
    stable_classes,
    xpath_literal,
)
from .snapshot import ElementNode, Snapshot
from .text_resolver import TextFacets, resolve_text_facets

logger = logging.getLogger(__name__)

_SPECTRA_ATTR_KEY = re.compile(r"^(?:sp-|data-spectra-)")
_SPECTRA_XPATH_ATTR_KEY = re.compile(r"^sp-")
_JET_ATTR_KEY = re.compile(r"^data-oj-")

TIER_TEST_ID = 1
TIER_FRAMEWORK_ATTR = 2
TIER_ID = 3
TIER_NAME = 4
TIER_FRAMEWORK_CLASS = 5
TIER_ARIA = 6
TIER_TYPE = 7
TIER_PLACEHOLDER = 8
TIER_TEXT_XPATH = 9
TIER_STABLE_CLASS = 10
TIER_XPATH_FALLBACK = 11


def _css_attr(attr: str, value: str, tag: str | None = None) -> str:
    return f'{tag or ""}[{attr}="{escape_css_value(value)}"]'


def _xpath_attr(tag: str, attr: str, value: str) -> str:
    return f"//{tag}[@{attr}={xpath_literal(value)}]"


class CandidateFactory:
    """Appends selector candidates tier by tier.

    Repeats across tiers are kept on purpose; the caller truncates the list.
    """

    def __init__(
        self,
        node: ElementNode,
        framework: ComponentFramework,
        facets: TextFacets,
        options: LocatorGenerationOptions,
        config: LocatorConfig = DEFAULT_CONFIG,
    ) -> None:
        self.node = node
        self.framework = framework
        self.facets = facets
        self.options = options
        self.config = config
        self._candidates: list[SelectorCandidate] = []

    @property
    def tag(self) -> str | None:
        return self.node.tag or None

    def generate(self) -> list[SelectorCandidate]:
        self._add_test_id_selectors()
        if self.options.prioritize_component_framework:
            self._add_framework_attribute_selectors()
        self._add_stable_id_selector()
        self._add_name_selectors()
        if self.options.prioritize_component_framework:
            self._add_framework_class_selectors()
        self._add_aria_selectors()
        self._add_type_selectors()
        self._add_placeholder_selectors()
        if self.options.extract_deep_text or self.options.aggregate_span_text:
            self._add_text_xpath_selectors()
        self._add_stable_class_selectors()
        self._add_xpath_fallbacks()
        return list(self._candidates)

    def _add(self, selector: str, tier: int, rule: str) -> None:
        self._candidates.append(SelectorCandidate(selector=selector, tier=tier, rule=rule))

    def _add_test_id_selectors(self) -> None:
        for attr in TEST_ID_ATTRIBUTES:
            value = self.node.attr(attr)
            if value:
                self._add(_css_attr(attr, value), TIER_TEST_ID, f"test_id:{attr}")

    def _add_framework_attribute_selectors(self) -> None:
        if self.framework is ComponentFramework.SPECTRA:
            pattern = _SPECTRA_ATTR_KEY
        elif self.framework is ComponentFramework.JET:
            pattern = _JET_ATTR_KEY
        else:
            return
        for key, value in self.node.attributes.items():
            if value and pattern.match(key):
                self._add(_css_attr(key, value), TIER_FRAMEWORK_ATTR, f"framework_attr:{self.framework.value}")

    def _add_stable_id_selector(self) -> None:
        element_id = self.node.id
        if not element_id or not is_stable_id(element_id, self.config):
            return
        if is_css_safe_id(element_id):
            self._add(f"#{element_id}", TIER_ID, "stable_id")
        else:
            self._add(_css_attr("id", element_id), TIER_ID, "stable_id")

    def _add_name_selectors(self) -> None:
        name = self.node.attr("name")
        if not name:
            return
        self._add(_css_attr("name", name), TIER_NAME, "name")
        if self.tag:
            self._add(_css_attr("name", name, self.tag), TIER_NAME, "name")

    def _add_framework_class_selectors(self) -> None:
        classes = framework_classes(self.node.class_list, self.framework)
        if not classes:
            return
        rule = f"framework_class:{self.framework.value}"
        self._add(f".{classes[0]}", TIER_FRAMEWORK_CLASS, rule)
        if len(classes) > 1:
            self._add("." + ".".join(classes), TIER_FRAMEWORK_CLASS, rule)

    def _add_aria_selectors(self) -> None:
        aria_label = self.node.attr("aria-label")
        if aria_label:
            self._add(_css_attr("aria-label", aria_label), TIER_ARIA, "aria_label")
        labelled_by = self.node.attr("aria-labelledby")
        if labelled_by:
            self._add(_css_attr("aria-labelledby", labelled_by), TIER_ARIA, "aria_labelledby")
        if self.facets.label_text:
            self._add(
                _xpath_attr(self.tag or "*", "aria-label", self.facets.label_text),
                TIER_ARIA,
                "aria_label_xpath",
            )

    def _add_type_selectors(self) -> None:
        input_type = self.node.attr("type")
        if not input_type:
            return
        self._add(_css_attr("type", input_type), TIER_TYPE, "type")
        if self.tag:
            self._add(_css_attr("type", input_type, self.tag), TIER_TYPE, "type")
        name = self.node.attr("name")
        if name:
            combined = f'{self.tag or "input"}[name="{escape_css_value(name)}"][type="{escape_css_value(input_type)}"]'
            self._add(combined, TIER_TYPE, "name_type")

    def _add_placeholder_selectors(self) -> None:
        placeholder = self.node.attr("placeholder")
        if placeholder:
            self._add(_css_attr("placeholder", placeholder), TIER_PLACEHOLDER, "placeholder")
            if self.tag:
                self._add(_css_attr("placeholder", placeholder, self.tag), TIER_PLACEHOLDER, "placeholder")
        if self.facets.placeholder_text:
            self._add(
                _xpath_attr(self.tag or "input", "placeholder", self.facets.placeholder_text),
                TIER_PLACEHOLDER,
                "placeholder_xpath",
            )

    def _add_text_xpath_selectors(self) -> None:
        tag = self.tag or "*"
        text = (self.facets.aggregated_text or self.facets.deep_text or "").strip()
        if 0 < len(text) < self.config.max_text_length:
            self._add(
                f"//{tag}[normalize-space(text())={xpath_literal(text)}]",
                TIER_TEXT_XPATH,
                "text_xpath",
            )
            if len(text) > self.config.contains_min_length:
                partial = text[: self.config.contains_prefix_length]
                self._add(
                    f"//{tag}[contains(normalize-space(text()), {xpath_literal(partial)})]",
                    TIER_TEXT_XPATH,
                    "text_xpath_contains",
                )

        label = (self.facets.label_text or "").strip()
        if label and len(label) < self.config.max_text_length:
            self._add(
                f"//{tag}[normalize-space(.)={xpath_literal(label)}]",
                TIER_TEXT_XPATH,
                "label_text_xpath",
            )

    def _add_stable_class_selectors(self) -> None:
        classes = stable_classes(self.node.class_list, self.config)
        if not classes:
            return
        self._add(f".{classes[0]}", TIER_STABLE_CLASS, "stable_class")
        if 1 < len(classes) <= 3:
            self._add("." + ".".join(classes), TIER_STABLE_CLASS, "stable_class")

    def _add_xpath_fallbacks(self) -> None:
        tag = self.tag or "*"
        element_id = self.node.id
        if element_id and is_stable_id(element_id, self.config):
            self._add(_xpath_attr(tag, "id", element_id), TIER_XPATH_FALLBACK, "xpath_id")

        name = self.node.attr("name")
        if name:
            self._add(_xpath_attr(tag, "name", name), TIER_XPATH_FALLBACK, "xpath_name")

        role = self.node.attr("role")
        if role:
            self._add(_xpath_attr(tag, "role", role), TIER_XPATH_FALLBACK, "xpath_role")

        if self.framework is ComponentFramework.SPECTRA:
            pattern = _SPECTRA_XPATH_ATTR_KEY
        elif self.framework is ComponentFramework.JET:
            pattern = _JET_ATTR_KEY
        else:
            return
        for key, value in self.node.attributes.items():
            if value and pattern.match(key):
                self._add(_xpath_attr(tag, key, value), TIER_XPATH_FALLBACK, f"xpath_framework_attr:{self.framework.value}")


def build_selector_candidates(
    node: ElementNode,
    snapshot: Snapshot,
    options: LocatorGenerationOptions | None = None,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> tuple[ComponentFramework, TextFacets, list[SelectorCandidate]]:
    opts = options or LocatorGenerationOptions()
    framework = detect_component_framework(node, max_depth=config.framework_ancestor_depth)
    facets = resolve_text_facets(node, snapshot, opts, config)
    candidates = CandidateFactory(node, framework, facets, opts, config).generate()
    return framework, facets, candidates


def generate_locators(
    node: ElementNode,
    snapshot: Snapshot,
    options: LocatorGenerationOptions | None = None,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> GeneratedLocators:
    framework, facets, candidates = build_selector_candidates(node, snapshot, options, config)
    if len(candidates) > config.max_selectors:
        logger.debug(
            "Truncating %d candidates to %d for <%s>",
            len(candidates),
            config.max_selectors,
            node.tag or "?",
        )
    return GeneratedLocators(
        candidates=candidates[: config.max_selectors],
        component_framework=framework,
        text_content=facets.deep_text or facets.aggregated_text or None,
        label_text=facets.label_text,
        placeholder_text=facets.placeholder_text,
    )
