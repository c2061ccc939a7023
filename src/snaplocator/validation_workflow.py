from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .config import DEFAULT_CONFIG, LocatorConfig
from .locator_generator import generate_locators
from .locator_validator import has_valid_selectors, render_validation_report, validate_locators
from .models import LocatorGenerationOptions, SelectorDialect, ValidationOptions, WorkflowResult
from .snapshot import ElementNode, Snapshot

logger = logging.getLogger(__name__)

INTERACTIVE_TAGS = frozenset({"input", "button", "a", "select", "textarea"})
INTERACTIVE_ROLES = frozenset({"button", "link", "textbox", "menuitem", "tab"})


def generate_and_validate_locators(
    node: ElementNode,
    snapshot: Snapshot,
    options: ValidationOptions | None = None,
    generation_options: LocatorGenerationOptions | None = None,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> WorkflowResult:
    opts = options or ValidationOptions.from_config(config)
    generated = generate_locators(node, snapshot, generation_options, config)
    report = validate_locators(node, generated, snapshot)

    dialects = {candidate.dialect for candidate in generated.candidates}
    has_min_selectors = report.valid_selectors >= opts.min_valid_selectors
    has_css = not opts.require_css or SelectorDialect.CSS in dialects
    has_xpath = not opts.require_xpath or SelectorDialect.XPATH in dialects
    success = has_min_selectors and has_css and has_xpath

    recommendations: list[str] = []
    if not has_min_selectors:
        recommendations.append(
            f"Need at least {opts.min_valid_selectors} valid selectors, "
            f"but only {report.valid_selectors} are valid."
        )
    if not has_css:
        recommendations.append("No valid CSS selectors found. Add CSS selector options.")
    if not has_xpath:
        recommendations.append("No valid XPath selectors found. Add XPath fallback options.")
    recommendations.extend(report.recommendations)

    logger.debug(
        "<%s> uid=%s valid=%d/%d success=%s",
        node.tag or "?",
        node.uid or "-",
        report.valid_selectors,
        report.total_selectors,
        success,
    )
    if opts.verbose:
        print(render_validation_report(report, generated.component_framework))

    return WorkflowResult(
        success=success,
        element_uid=node.uid,
        element_tag=node.tag,
        generated_locators=generated,
        validation_report=report,
        needs_retry=not success and opts.auto_retry,
        recommendations=tuple(recommendations),
    )


def batch_validate_locators(
    nodes: Iterable[ElementNode],
    snapshot: Snapshot,
    options: ValidationOptions | None = None,
    generation_options: LocatorGenerationOptions | None = None,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> list[WorkflowResult]:
    """Validate each node in order; one failing element never stops the batch."""
    return [
        generate_and_validate_locators(node, snapshot, options, generation_options, config)
        for node in nodes
    ]


def quick_validate(
    node: ElementNode,
    snapshot: Snapshot,
    min_valid_selectors: int = DEFAULT_CONFIG.min_valid_selectors,
    config: LocatorConfig = DEFAULT_CONFIG,
) -> bool:
    generated = generate_locators(node, snapshot, config=config)
    if not has_valid_selectors(node, generated, snapshot):
        return False
    return validate_locators(node, generated, snapshot).valid_selectors >= min_valid_selectors


def _percent(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(part / total * 100)


def render_batch_report(results: list[WorkflowResult]) -> str:
    total = len(results)
    failed_results = [result for result in results if not result.success]
    successful = total - len(failed_results)
    needs_retry = sum(1 for result in results if result.needs_retry)

    lines = [
        "=== Batch Validation Summary ===",
        "",
        f"Total Elements: {total}",
        f"Successful: {successful} ({_percent(successful, total)}%)",
        f"Failed: {len(failed_results)} ({_percent(len(failed_results), total)}%)",
        f"Need Retry: {needs_retry}",
        "",
    ]
    if failed_results:
        lines.append("--- Failed Elements ---")
        for result in failed_results:
            report = result.validation_report
            lines.append(f"x {result.element_tag or 'unknown'} (UID: {result.element_uid or 'N/A'})")
            lines.append(f"  Valid Selectors: {report.valid_selectors}/{report.total_selectors}")
            if result.recommendations:
                lines.append(f"  Top Recommendation: {result.recommendations[0]}")
            lines.append("")
    return "\n".join(lines)


def export_validation_results(
    results: list[WorkflowResult],
    timestamp: str | None = None,
) -> dict[str, Any]:
    exported: list[dict[str, Any]] = []
    for result in results:
        report = result.validation_report
        selectors: list[dict[str, Any]] = []
        for index, selector in enumerate(result.generated_locators.selectors):
            verdict = report.results[index] if index < len(report.results) else None
            selectors.append(
                {
                    "selector": selector,
                    "isValid": verdict.is_valid if verdict else False,
                    "reason": verdict.reason if verdict else "unknown",
                }
            )
        exported.append(
            {
                "elementUid": result.element_uid,
                "elementTag": result.element_tag,
                "success": result.success,
                "validSelectors": report.valid_selectors,
                "totalSelectors": report.total_selectors,
                "componentFramework": result.generated_locators.component_framework.value,
                "recommendations": list(result.recommendations),
                "selectors": selectors,
            }
        )

    successful = sum(1 for result in results if result.success)
    return {
        "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
        "totalElements": len(results),
        "successful": successful,
        "failed": len(results) - successful,
        "results": exported,
    }


def write_validation_results(results: list[WorkflowResult], path: Path) -> dict[str, Any]:
    payload = export_validation_results(results)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.debug("Wrote validation results for %d element(s) to %s", len(results), path)
    return payload


def is_interactive(node: ElementNode) -> bool:
    if node.tag in INTERACTIVE_TAGS:
        return True
    role = (node.attr("role") or "").strip().lower()
    if role in INTERACTIVE_ROLES:
        return True
    return bool(node.attr("onclick") or node.attr("href"))


def find_interactive_elements(snapshot: Snapshot) -> list[ElementNode]:
    return [node for node in snapshot.walk() if is_interactive(node)]
