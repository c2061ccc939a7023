from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import LocatorConfig


class ComponentFramework(str, Enum):
    SPECTRA = "spectra"
    JET = "jet"
    REDWOOD = "redwood"
    HTML = "html"


class SelectorDialect(str, Enum):
    CSS = "CSS"
    XPATH = "XPath"

    @classmethod
    def of(cls, selector: str) -> SelectorDialect:
        return cls.XPATH if selector.startswith("//") else cls.CSS


class ValidationReason(str, Enum):
    INVALID_SYNTAX = "invalid-syntax"
    NO_MATCH = "no-match"
    MULTIPLE_MATCH = "multiple-match"
    WRONG_MATCH = "wrong-match"
    OK = "ok"


@dataclass(frozen=True, slots=True)
class SelectorCandidate:
    selector: str
    tier: int
    rule: str

    @property
    def dialect(self) -> SelectorDialect:
        return SelectorDialect.of(self.selector)


@dataclass(frozen=True, slots=True)
class LocatorGenerationOptions:
    prioritize_component_framework: bool = True
    extract_deep_text: bool = True
    aggregate_span_text: bool = True


@dataclass(slots=True)
class GeneratedLocators:
    candidates: list[SelectorCandidate]
    component_framework: ComponentFramework
    text_content: str | None
    label_text: str | None
    placeholder_text: str | None

    @property
    def selectors(self) -> list[str]:
        return [candidate.selector for candidate in self.candidates]

    def to_dict(self) -> dict[str, Any]:
        return {
            "selectors": self.selectors,
            "componentFramework": self.component_framework.value,
            "textContent": self.text_content,
            "labelText": self.label_text,
            "placeholderText": self.placeholder_text,
        }


@dataclass(frozen=True, slots=True)
class ValidationResult:
    selector: str
    is_valid: bool
    reason: str
    reason_code: ValidationReason
    element_found: bool
    matches_target_element: bool
    match_count: int = 0
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "selector": self.selector,
            "isValid": self.is_valid,
            "reason": self.reason,
            "elementFound": self.element_found,
            "matchesTargetElement": self.matches_target_element,
        }
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload


@dataclass(frozen=True, slots=True)
class ValidationReport:
    element_uid: str | None
    element_tag: str | None
    total_selectors: int
    valid_selectors: int
    invalid_selectors: int
    results: tuple[ValidationResult, ...] = ()
    recommendations: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ValidationOptions:
    min_valid_selectors: int = 2
    require_css: bool = True
    require_xpath: bool = True
    auto_retry: bool = False
    verbose: bool = False

    @classmethod
    def from_config(cls, config: LocatorConfig, **overrides: Any) -> ValidationOptions:
        values: dict[str, Any] = {
            "min_valid_selectors": config.min_valid_selectors,
            "require_css": config.require_css,
            "require_xpath": config.require_xpath,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True, slots=True)
class WorkflowResult:
    success: bool
    element_uid: str | None
    element_tag: str | None
    generated_locators: GeneratedLocators
    validation_report: ValidationReport
    needs_retry: bool = False
    recommendations: tuple[str, ...] = field(default_factory=tuple)
