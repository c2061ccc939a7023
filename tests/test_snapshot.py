from pathlib import Path

import pytest

from snaplocator.snapshot import (
    ElementNode,
    SnapshotFormatError,
    canonical_attr_key,
    find_element_by_uid,
    load_snapshot,
    parse_snapshot,
)


def _payload() -> dict:
    return {
        "url": "https://example.org/login",
        "timestamp": "2024-01-01T00:00:00Z",
        "elements": [
            {
                "uid": "e1",
                "tag": "FORM",
                "class": "login-form  form-vertical",
                "children": [
                    {"uid": "e2", "tag": "label", "attributes": {"for": "u1"}, "text": "Username"},
                    {"_uid": "e3", "tag": "input", "attributes": {"id": "u1", "dataTestid": "user"}},
                ],
            }
        ],
    }


def test_parse_snapshot_builds_tree_with_parent_links() -> None:
    snapshot = parse_snapshot(_payload())

    form = snapshot.elements[0]
    label, field = form.children

    assert form.tag == "form"
    assert form.class_list == ["login-form", "form-vertical"]
    assert label.parent is form
    assert field.parent is form
    assert form.parent is None
    assert snapshot.url == "https://example.org/login"


def test_uid_and_id_fallbacks() -> None:
    snapshot = parse_snapshot(_payload())

    field = find_element_by_uid(snapshot, "e3")
    assert field is not None
    assert field.id == "u1"
    assert snapshot.find_by_id("u1") is field
    assert find_element_by_uid(snapshot, "missing") is None


def test_attribute_lookup_folds_camel_case_and_hyphen_forms() -> None:
    node = ElementNode(tag="input", attributes={"dataTestid": "user", "aria-label": "User"})

    assert node.attr("data-testid") == "user"
    assert node.attr("ariaLabel") == "User"
    assert node.attr("data-cy") is None
    assert canonical_attr_key("data-testid") == canonical_attr_key("dataTestid") == "datatestid"
    assert canonical_attr_key("htmlFor") == "for"


def test_walk_is_document_order() -> None:
    snapshot = parse_snapshot(_payload())

    assert [node.uid for node in snapshot.walk()] == ["e1", "e2", "e3"]


def test_ancestors_respect_limit() -> None:
    leaf = ElementNode(tag="span")
    middle = ElementNode(tag="div", children=[leaf])
    root = ElementNode(tag="section", children=[middle])

    assert list(leaf.ancestors()) == [middle, root]
    assert list(leaf.ancestors(limit=1)) == [middle]


def test_round_trip_keeps_shape() -> None:
    snapshot = parse_snapshot(_payload())
    again = parse_snapshot(snapshot.to_dict())

    assert [node.uid for node in again.walk()] == ["e1", "e2", "e3"]
    assert again.elements[0].class_list == ["login-form", "form-vertical"]


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"elements": {"tag": "div"}},
        {"elements": ["div"]},
        {"elements": [{"tag": "div", "children": "nope"}]},
        {"elements": [{"tag": "div", "attributes": ["a"]}]},
    ],
)
def test_malformed_payload_raises_format_error(payload: object) -> None:
    with pytest.raises(SnapshotFormatError):
        parse_snapshot(payload)


def test_load_snapshot_wraps_io_and_json_errors(tmp_path: Path) -> None:
    with pytest.raises(SnapshotFormatError):
        load_snapshot(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(SnapshotFormatError):
        load_snapshot(broken)


def test_missing_elements_is_empty_snapshot() -> None:
    snapshot = parse_snapshot({"url": "https://example.org"})

    assert snapshot.elements == []
    assert list(snapshot.walk()) == []


def _nested_payload(depth: int) -> dict:
    node: dict = {"uid": f"e{depth}", "tag": "span", "text": "leaf"}
    for level in range(depth - 1, 0, -1):
        node = {"uid": f"e{level}", "tag": "div", "children": [node]}
    return {"elements": [node]}


def test_deeply_nested_snapshot_parses_and_serialises() -> None:
    snapshot = parse_snapshot(_nested_payload(5_000))

    leaf = find_element_by_uid(snapshot, "e5000")
    assert leaf is not None
    assert leaf.text == "leaf"
    assert len(list(leaf.ancestors())) == 4_999

    again = parse_snapshot(snapshot.to_dict())
    assert sum(1 for _ in again.walk()) == 5_000


def test_load_snapshot_rejects_json_too_deep_to_decode(tmp_path: Path) -> None:
    depth = 100_000
    path = tmp_path / "deep.json"
    path.write_text(
        '{"elements": [' + '{"tag": "div", "children": [' * depth + "]}" * depth + "]}",
        encoding="utf-8",
    )

    with pytest.raises(SnapshotFormatError):
        load_snapshot(path)
