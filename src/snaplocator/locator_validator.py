from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Callable

from .models import (
    ComponentFramework,
    GeneratedLocators,
    ValidationReason,
    ValidationReport,
    ValidationResult,
)
from .selector_rules import (
    TEST_ID_ATTRIBUTES,
    is_stable_id,
    is_valid_selector_syntax,
    is_xpath_selector,
    normalize_space,
)
from .snapshot import ElementNode, Snapshot
from .text_resolver import extract_deep_text

logger = logging.getLogger(__name__)

Matcher = Callable[[ElementNode], bool]

_TAG_PATTERN = re.compile(r"\*|[A-Za-z][A-Za-z0-9_-]*")
_ID_PATTERN = re.compile(r"-?[A-Za-z_][A-Za-z0-9_-]*")
_CLASS_PATTERN = re.compile(r"[^\s.#\[\]:>+~,()]+")
_ATTR_NAME_PATTERN = re.compile(r"[A-Za-z_:][A-Za-z0-9_:.-]*")
_UNQUOTED_VALUE_PATTERN = re.compile(r"[A-Za-z0-9_-]+")

_XPATH_STEP = re.compile(r"^//(?P<tag>\*|[A-Za-z][A-Za-z0-9_-]*)\[(?P<predicate>.+)\]$", re.DOTALL)
_XPATH_ATTR_EQ = re.compile(r"^@(?P<attr>[A-Za-z_][A-Za-z0-9_:.-]*)\s*=\s*(?P<literal>.+)$", re.DOTALL)
_XPATH_CONTAINS_TEXT = re.compile(r"^contains\(\s*text\(\)\s*,\s*(?P<literal>.+)\)$", re.DOTALL)
_XPATH_CONTAINS_NORMALIZED_TEXT = re.compile(
    r"^contains\(\s*normalize-space\(\s*text\(\)\s*\)\s*,\s*(?P<literal>.+)\)$", re.DOTALL
)
_XPATH_NORMALIZED_TEXT_EQ = re.compile(r"^normalize-space\(\s*text\(\)\s*\)\s*=\s*(?P<literal>.+)$", re.DOTALL)
_XPATH_NORMALIZED_SELF_EQ = re.compile(r"^normalize-space\(\s*\.\s*\)\s*=\s*(?P<literal>.+)$", re.DOTALL)

SUGGESTIONS = {
    ValidationReason.INVALID_SYNTAX: "Fix selector syntax or use valid CSS/XPath",
    ValidationReason.NO_MATCH: "Selector does not match any element in snapshot. Verify attributes are correct.",
    ValidationReason.MULTIPLE_MATCH: "Selector is not unique. Add more specific attributes or use parent context.",
    ValidationReason.WRONG_MATCH: (
        "Selector is too generic. Use more specific attributes or component-specific locators."
    ),
}


@dataclass(frozen=True, slots=True)
class CompoundSelector:
    tag: str | None
    ids: tuple[str, ...]
    classes: tuple[str, ...]
    attributes: tuple[tuple[str, str | None], ...]

    def matches(self, node: ElementNode) -> bool:
        if self.tag and self.tag != "*" and (node.tag or "") != self.tag.lower():
            return False
        for element_id in self.ids:
            if node.id != element_id:
                return False
        for class_name in self.classes:
            if class_name not in node.class_list:
                return False
        for name, value in self.attributes:
            actual = node.attr(name)
            if value is None:
                if actual is None:
                    return False
            elif actual != value:
                return False
        return True


def _read_quoted(selector: str, start: int) -> tuple[str, int] | None:
    quote = selector[start]
    chars: list[str] = []
    index = start + 1
    while index < len(selector):
        char = selector[index]
        if char == "\\" and index + 1 < len(selector):
            chars.append(selector[index + 1])
            index += 2
            continue
        if char == quote:
            return "".join(chars), index + 1
        chars.append(char)
        index += 1
    return None


def parse_compound_css(selector: str) -> CompoundSelector | None:
    """Parse ``tag#id.class[attr="value"]`` style selectors.

    Combinators and pseudo-classes are outside the supported subset and
    yield None.
    """
    text = selector.strip()
    if not text:
        return None

    position = 0
    tag: str | None = None
    ids: list[str] = []
    classes: list[str] = []
    attributes: list[tuple[str, str | None]] = []

    match = _TAG_PATTERN.match(text, position)
    if match:
        tag = match.group(0)
        position = match.end()

    while position < len(text):
        char = text[position]
        if char == "#":
            match = _ID_PATTERN.match(text, position + 1)
            if not match:
                return None
            ids.append(match.group(0))
            position = match.end()
        elif char == ".":
            match = _CLASS_PATTERN.match(text, position + 1)
            if not match:
                return None
            classes.append(match.group(0))
            position = match.end()
        elif char == "[":
            parsed = _parse_attribute(text, position + 1)
            if parsed is None:
                return None
            attribute, position = parsed
            attributes.append(attribute)
        else:
            return None

    if tag is None and not ids and not classes and not attributes:
        return None
    return CompoundSelector(tag=tag, ids=tuple(ids), classes=tuple(classes), attributes=tuple(attributes))


def _parse_attribute(text: str, position: int) -> tuple[tuple[str, str | None], int] | None:
    position = _skip_spaces(text, position)
    match = _ATTR_NAME_PATTERN.match(text, position)
    if not match:
        return None
    name = match.group(0)
    position = _skip_spaces(text, match.end())
    if position >= len(text):
        return None
    if text[position] == "]":
        return (name, None), position + 1
    if text[position] != "=":
        return None
    position = _skip_spaces(text, position + 1)
    if position >= len(text):
        return None
    if text[position] in {'"', "'"}:
        quoted = _read_quoted(text, position)
        if quoted is None:
            return None
        value, position = quoted
    else:
        match = _UNQUOTED_VALUE_PATTERN.match(text, position)
        if not match:
            return None
        value = match.group(0)
        position = match.end()
    position = _skip_spaces(text, position)
    if position >= len(text) or text[position] != "]":
        return None
    return (name, value), position + 1


def _skip_spaces(text: str, position: int) -> int:
    while position < len(text) and text[position].isspace():
        position += 1
    return position


def parse_xpath_literal(raw: str) -> str | None:
    """Decode a quoted XPath string literal or a ``concat()`` of literals."""
    text = raw.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        body = text[1:-1]
        if text[0] in body:
            return None
        return body

    if not (text.startswith("concat(") and text.endswith(")")):
        return None
    inner = text[len("concat(") : -1]
    pieces: list[str] = []
    position = 0
    while True:
        position = _skip_spaces(inner, position)
        if position >= len(inner) or inner[position] not in {'"', "'"}:
            return None
        quote = inner[position]
        end = inner.find(quote, position + 1)
        if end < 0:
            return None
        pieces.append(inner[position + 1 : end])
        position = _skip_spaces(inner, end + 1)
        if position >= len(inner):
            break
        if inner[position] != ",":
            return None
        position += 1
    return "".join(pieces)


def _tag_matches(tag: str, node: ElementNode) -> bool:
    return tag == "*" or (node.tag or "") == tag.lower()


def compile_xpath(selector: str) -> Matcher | None:
    step = _XPATH_STEP.match(selector.strip())
    if not step:
        return None
    tag = step.group("tag")
    predicate = step.group("predicate").strip()

    match = _XPATH_ATTR_EQ.match(predicate)
    if match:
        attr = match.group("attr")
        value = parse_xpath_literal(match.group("literal"))
        if value is None:
            return None
        return lambda node: _tag_matches(tag, node) and node.attr(attr) == value

    match = _XPATH_CONTAINS_NORMALIZED_TEXT.match(predicate)
    if match:
        value = parse_xpath_literal(match.group("literal"))
        if value is None:
            return None
        return lambda node: _tag_matches(tag, node) and value in normalize_space(node.text)

    match = _XPATH_CONTAINS_TEXT.match(predicate)
    if match:
        value = parse_xpath_literal(match.group("literal"))
        if value is None:
            return None
        return lambda node: _tag_matches(tag, node) and value in (node.text or "")

    match = _XPATH_NORMALIZED_TEXT_EQ.match(predicate)
    if match:
        value = parse_xpath_literal(match.group("literal"))
        if value is None:
            return None
        return lambda node: _tag_matches(tag, node) and normalize_space(node.text) == value

    match = _XPATH_NORMALIZED_SELF_EQ.match(predicate)
    if match:
        value = parse_xpath_literal(match.group("literal"))
        if value is None:
            return None
        return lambda node: _tag_matches(tag, node) and extract_deep_text(node) == value

    return None


def compile_selector(selector: str) -> Matcher | None:
    if is_xpath_selector(selector):
        matcher = compile_xpath(selector)
    else:
        compound = parse_compound_css(selector)
        matcher = compound.matches if compound else None
    if matcher is None:
        logger.debug("Selector shape not supported by snapshot matcher: %s", selector)
    return matcher


def find_elements_by_selector(selector: str, snapshot: Snapshot) -> list[ElementNode]:
    matcher = compile_selector(selector)
    if matcher is None:
        return []
    return [node for node in snapshot.walk() if matcher(node)]


def count_selector_matches(selector: str, snapshot: Snapshot) -> int:
    return len(find_elements_by_selector(selector, snapshot))


def _test_id(node: ElementNode) -> tuple[str, str] | None:
    for attr in TEST_ID_ATTRIBUTES:
        value = node.attr(attr)
        if value:
            return attr, value
    return None


def is_same_element(left: ElementNode, right: ElementNode) -> bool:
    if left.uid and right.uid:
        return left.uid == right.uid
    if left.id and right.id:
        return left.id == right.id

    left_test_id = _test_id(left)
    right_test_id = _test_id(right)
    if left_test_id and right_test_id:
        return left_test_id[1] == right_test_id[1]

    if left.tag == right.tag:
        left_name = left.attr("name")
        right_name = right.attr("name")
        if left_name and right_name and left_name == right_name:
            return True
    return False


def _failure(
    selector: str,
    code: ValidationReason,
    reason: str,
    *,
    element_found: bool,
    match_count: int = 0,
) -> ValidationResult:
    return ValidationResult(
        selector=selector,
        is_valid=False,
        reason=reason,
        reason_code=code,
        element_found=element_found,
        matches_target_element=False,
        match_count=match_count,
        suggestion=SUGGESTIONS[code],
    )


def validate_selector(selector: str, target: ElementNode, snapshot: Snapshot) -> ValidationResult:
    if not is_valid_selector_syntax(selector):
        return _failure(selector, ValidationReason.INVALID_SYNTAX, "Invalid selector syntax", element_found=False)

    matches = find_elements_by_selector(selector, snapshot)
    if not matches:
        return _failure(
            selector,
            ValidationReason.NO_MATCH,
            "No elements found matching selector",
            element_found=False,
        )
    if len(matches) > 1:
        return _failure(
            selector,
            ValidationReason.MULTIPLE_MATCH,
            f"Multiple elements found ({len(matches)})",
            element_found=True,
            match_count=len(matches),
        )
    if not is_same_element(matches[0], target):
        return _failure(
            selector,
            ValidationReason.WRONG_MATCH,
            "Selector matches different element",
            element_found=True,
            match_count=1,
        )
    return ValidationResult(
        selector=selector,
        is_valid=True,
        reason="Selector matches target element",
        reason_code=ValidationReason.OK,
        element_found=True,
        matches_target_element=True,
        match_count=1,
    )


def validate_locators(
    target: ElementNode,
    generated: GeneratedLocators,
    snapshot: Snapshot,
) -> ValidationReport:
    results = [validate_selector(selector, target, snapshot) for selector in generated.selectors]
    recommendations = [result.suggestion for result in results if not result.is_valid and result.suggestion]
    warnings: list[str] = []

    valid_count = sum(1 for result in results if result.is_valid)
    invalid_count = len(results) - valid_count

    if results and invalid_count == len(results):
        recommendations.append("ALL selectors failed validation. Take fresh snapshot and regenerate locators.")
        recommendations.append("Verify element still exists and attributes have not changed.")
    elif invalid_count > 0:
        recommendations.append(
            f"{invalid_count} selector(s) failed. Keep valid selectors, regenerate failed ones."
        )

    has_stable_id = bool(target.id) and is_stable_id(target.id)
    if not has_stable_id and _test_id(target) is None:
        warnings.append("Element has no stable ID or test ID. Consider adding data-testid attribute.")
    if generated.component_framework is ComponentFramework.HTML:
        warnings.append("Component framework not detected. Verify parent elements are captured in snapshot.")
    if not generated.text_content and not generated.label_text and not generated.placeholder_text:
        warnings.append("No text content found. Text-based XPath selectors may not work.")

    return ValidationReport(
        element_uid=target.uid,
        element_tag=target.tag,
        total_selectors=len(results),
        valid_selectors=valid_count,
        invalid_selectors=invalid_count,
        results=tuple(results),
        recommendations=tuple(recommendations),
        warnings=tuple(warnings),
    )


def has_valid_selectors(target: ElementNode, generated: GeneratedLocators, snapshot: Snapshot) -> bool:
    return validate_locators(target, generated, snapshot).valid_selectors > 0


def render_validation_report(report: ValidationReport, framework: ComponentFramework) -> str:
    lines = [
        "=== Locator Validation Report ===",
        "",
        f"Element: {report.element_tag or 'unknown'} (UID: {report.element_uid or 'N/A'})",
        f"Component Framework: {framework.value}",
        f"Total Selectors: {report.total_selectors}",
        f"Valid: {report.valid_selectors} | Invalid: {report.invalid_selectors}",
        "",
        "--- Selector Results ---",
    ]
    for result in report.results:
        status = "PASS" if result.is_valid else "FAIL"
        lines.append(f"[{status}] {result.selector}")
        lines.append(f"   Reason: {result.reason}")
        if result.suggestion:
            lines.append(f"   Suggestion: {result.suggestion}")
        lines.append("")

    if report.warnings:
        lines.append("--- Warnings ---")
        lines.extend(f"! {warning}" for warning in report.warnings)
        lines.append("")

    if report.recommendations:
        lines.append("--- Recommendations ---")
        lines.extend(f"-> {item}" for item in report.recommendations)
        lines.append("")

    return "\n".join(lines)
