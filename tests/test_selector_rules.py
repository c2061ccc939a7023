from snaplocator.config import LocatorConfig
from snaplocator.selector_rules import (
    escape_css_value,
    is_css_safe_id,
    is_stable_class,
    is_stable_id,
    is_valid_selector_syntax,
    normalize_space,
    stable_classes,
    xpath_literal,
)


def test_stable_id_rejects_generated_values() -> None:
    assert not is_stable_id("123456")
    assert not is_stable_id("a1b2c3d4e5f6a1b2c3d4e5f6a1b2c3d4")
    assert not is_stable_id("timestamp_1699999999")
    assert not is_stable_id("element-12345")
    assert not is_stable_id("tempField")
    assert not is_stable_id("")
    assert not is_stable_id(None)


def test_stable_id_accepts_readable_values() -> None:
    assert is_stable_id("loginButton")
    assert is_stable_id("user-name")
    assert is_stable_id("sp-input-1a")


def test_hex_run_threshold_is_configurable() -> None:
    config = LocatorConfig(hex_run_length=8)

    assert is_stable_id("abcdef12")
    assert not is_stable_id("abcdef12", config)


def test_stable_class_rules() -> None:
    assert is_stable_class("btn-primary")
    assert is_stable_class("submit")
    assert is_stable_class("Header")
    assert not is_stable_class("css1a2b3c4d5e")
    assert not is_stable_class("abcdefghijklmnop")
    assert not is_stable_class("very-long-descriptive-name")
    assert not is_stable_class("_private")


def test_stable_classes_keeps_order() -> None:
    assert stable_classes(["x9f8e7d6c5b4", "card", "btn-primary", ""]) == ["card", "btn-primary"]


def test_xpath_literal_quoting() -> None:
    assert xpath_literal("Submit") == '"Submit"'
    assert xpath_literal('Say "hi"') == "'Say \"hi\"'"
    assert xpath_literal("it's") == '"it\'s"'


def test_xpath_literal_uses_concat_for_mixed_quotes() -> None:
    literal = xpath_literal("Say \"hi\" and 'bye'")

    assert literal.startswith("concat(")
    assert literal == "concat(\"Say \", '\"', \"hi\", '\"', \" and 'bye'\")"


def test_escape_css_value() -> None:
    assert escape_css_value('a"b') == 'a\\"b'
    assert escape_css_value("a\\b") == "a\\b"
    assert escape_css_value("it's") == "it\\'s"


def test_css_safe_id() -> None:
    assert is_css_safe_id("login")
    assert is_css_safe_id("-user_name")
    assert not is_css_safe_id("1abc")
    assert not is_css_safe_id("form:field")


def test_selector_syntax() -> None:
    assert is_valid_selector_syntax("//button[@id=\"x\"]")
    assert not is_valid_selector_syntax("// ")
    assert is_valid_selector_syntax("#login")
    assert is_valid_selector_syntax(".btn")
    assert is_valid_selector_syntax('[data-testid="x"]')
    assert is_valid_selector_syntax("input")
    assert not is_valid_selector_syntax('button:contains("Go")')
    assert not is_valid_selector_syntax(" input")
    assert not is_valid_selector_syntax(">div")


def test_normalize_space() -> None:
    assert normalize_space("  Hello \n  World ") == "Hello World"
    assert normalize_space(None) == ""
    assert normalize_space("abcdef", limit=3) == "abc"
