from snaplocator.snapshot_capture import capture_snapshot, capture_snapshot_payload


class _FakePage:
    def __init__(self, payload: dict) -> None:
        self.payload = payload
        self.scripts: list[str] = []

    def evaluate(self, script: str) -> dict:
        self.scripts.append(script)
        return self.payload


def _captured() -> dict:
    return {
        "url": "https://example.org/",
        "elements": [
            {
                "uid": "e1",
                "tag": "body",
                "attributes": {},
                "children": [
                    {
                        "uid": "e2",
                        "tag": "button",
                        "id": "save",
                        "class": "btn btn-primary",
                        "attributes": {"type": "submit"},
                        "children": [],
                        "text": "Save",
                    }
                ],
            }
        ],
    }


def test_capture_snapshot_payload_adds_timestamp() -> None:
    page = _FakePage(_captured())

    payload = capture_snapshot_payload(page)

    assert payload["timestamp"]
    assert payload["url"] == "https://example.org/"
    assert "document.body" in page.scripts[0]


def test_capture_snapshot_parses_tree() -> None:
    snapshot = capture_snapshot(_FakePage(_captured()))

    button = snapshot.find_by_uid("e2")
    assert button is not None
    assert button.id == "save"
    assert button.class_list == ["btn", "btn-primary"]
    assert button.parent is snapshot.elements[0]


def test_capture_handles_empty_result() -> None:
    snapshot = capture_snapshot(_FakePage({}))

    assert snapshot.elements == []
