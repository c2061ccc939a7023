from __future__ import annotations

from functools import lru_cache
import re

from .config import DEFAULT_CONFIG, LocatorConfig

TEST_ID_ATTRIBUTES = ("data-testid", "data-cy", "data-test")

_NUMERIC_ID_PATTERN = re.compile(r"^\d+$")
_VOLATILE_ID_WORDS = re.compile(r"timestamp|random|temp|gen", re.IGNORECASE)
_WORD_DIGITS_ID_PATTERN = re.compile(r"^[a-z]+-\d+$", re.IGNORECASE)

_SEMANTIC_CLASS_PREFIX = re.compile(r"^(?:btn|input|form|oxd|ant|mui|sp|oj|spectra|redwood)-")
_SIMPLE_CLASS_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$", re.IGNORECASE)

_CSS_SAFE_ID_PATTERN = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")

_CSS_START_PATTERN = re.compile(r"^(?:[#.][A-Za-z0-9_-]|\[|[A-Za-z0-9_-])")
_XPATH_START_PATTERN = re.compile(r"^//\S")


def normalize_space(value: str | None, limit: int | None = None) -> str:
    if not value:
        return ""
    compact = re.sub(r"\s+", " ", str(value)).strip()
    if limit is not None:
        return compact[:limit]
    return compact


def is_xpath_selector(selector: str) -> bool:
    return selector.startswith("//")


@lru_cache(maxsize=8)
def _hex_run_pattern(length: int) -> re.Pattern[str]:
    return re.compile(rf"[a-f0-9]{{{length},}}", re.IGNORECASE)


@lru_cache(maxsize=8)
def _hashed_class_pattern(length: int) -> re.Pattern[str]:
    return re.compile(rf"^[a-z0-9]{{{length},}}$", re.IGNORECASE)


def is_stable_id(id_value: str | None, config: LocatorConfig = DEFAULT_CONFIG) -> bool:
    value = (id_value or "").strip()
    if not value:
        return False
    if _NUMERIC_ID_PATTERN.match(value):
        return False
    if _hex_run_pattern(config.hex_run_length).search(value):
        return False
    if _VOLATILE_ID_WORDS.search(value):
        return False
    if _WORD_DIGITS_ID_PATTERN.match(value):
        return False
    return True


def is_stable_class(token: str, config: LocatorConfig = DEFAULT_CONFIG) -> bool:
    value = token.strip()
    if not value:
        return False
    # Long hyphen-free alphanumerics are almost always build hashes.
    if _hashed_class_pattern(config.hashed_class_min_length).match(value):
        return False
    if _SEMANTIC_CLASS_PREFIX.match(value):
        return True
    if len(value) < config.short_class_max_length and _SIMPLE_CLASS_PATTERN.match(value):
        return True
    return False


def stable_classes(tokens: list[str], config: LocatorConfig = DEFAULT_CONFIG) -> list[str]:
    return [token for token in tokens if token.strip() and is_stable_class(token, config)]


def is_css_safe_id(value: str) -> bool:
    return bool(_CSS_SAFE_ID_PATTERN.fullmatch(value.strip()))


def escape_css_value(value: str) -> str:
    return value.replace('"', '\\"').replace("'", "\\'")


def xpath_literal(value: str) -> str:
    """Quote ``value`` as an XPath 1.0 string literal.

    XPath has no escape sequence inside literals, so a value holding both
    quote characters is spliced together with ``concat()``.
    """
    has_double = '"' in value
    has_single = "'" in value
    if has_double and has_single:
        pieces = value.split('"')
        parts: list[str] = []
        for index, piece in enumerate(pieces):
            if index > 0:
                parts.append("'\"'")
            parts.append(f'"{piece}"')
        return "concat(" + ", ".join(parts) + ")"
    if has_double:
        return f"'{value}'"
    return f'"{value}"'


def is_valid_selector_syntax(selector: str) -> bool:
    if is_xpath_selector(selector):
        return bool(_XPATH_START_PATTERN.match(selector))
    if ":contains(" in selector:
        return False
    return bool(_CSS_START_PATTERN.match(selector))
