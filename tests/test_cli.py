import json
from pathlib import Path

import pytest

from snaplocator.cli import default_results_path, main


def _write_snapshot(folder: Path, *buttons: dict) -> Path:
    path = folder / "login.json"
    payload = {
        "url": "https://example.org/login",
        "elements": [{"uid": "e1", "tag": "div", "children": list(buttons)}],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


_SIGN_IN = {"uid": "e2", "tag": "button", "attributes": {"data-testid": "login-btn"}, "text": "Sign in"}
_SUBMIT = {"uid": "e3", "tag": "button", "text": "Submit"}


def _args(tmp_path: Path, *extra: str) -> list[str]:
    return [*extra, "--config", str(tmp_path / "missing-config.json")]


def test_single_element_pass(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snapshot_path = _write_snapshot(tmp_path, _SIGN_IN, _SUBMIT)

    code = main(_args(tmp_path, str(snapshot_path), "e2"))

    out = capsys.readouterr().out
    assert code == 0
    assert "URL: https://example.org/login" in out
    assert "Validation PASSED" in out
    assert "=== Locator Validation Report ===" in out


def test_single_element_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snapshot_path = _write_snapshot(tmp_path, _SIGN_IN, _SUBMIT)

    code = main(_args(tmp_path, str(snapshot_path), "e3"))

    assert code == 1
    assert "Validation FAILED" in capsys.readouterr().out


def test_relaxed_flags_let_single_xpath_pass(tmp_path: Path) -> None:
    snapshot_path = _write_snapshot(tmp_path, _SUBMIT)

    code = main(_args(tmp_path, str(snapshot_path), "e3", "--min-valid", "1", "--no-require-css"))

    assert code == 0


def test_unknown_uid(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snapshot_path = _write_snapshot(tmp_path, _SIGN_IN)

    assert main(_args(tmp_path, str(snapshot_path), "e99")) == 1
    assert 'Element with UID "e99" not found' in capsys.readouterr().err


def test_batch_writes_results_next_to_snapshot(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snapshot_path = _write_snapshot(tmp_path, _SIGN_IN, _SUBMIT)

    code = main(_args(tmp_path, str(snapshot_path)))

    out = capsys.readouterr().out
    results_path = tmp_path / "login-validation-results.json"
    assert code == 1
    assert "Found 2 interactive elements" in out
    assert "=== Batch Validation Summary ===" in out
    assert results_path.exists()
    payload = json.loads(results_path.read_text(encoding="utf-8"))
    assert payload["totalElements"] == 2
    assert payload["failed"] == 1


def test_batch_all_pass_with_custom_output(tmp_path: Path) -> None:
    snapshot_path = _write_snapshot(tmp_path, _SIGN_IN)
    output = tmp_path / "out.json"

    code = main(_args(tmp_path, str(snapshot_path), "--output", str(output)))

    assert code == 0
    assert json.loads(output.read_text(encoding="utf-8"))["successful"] == 1


def test_no_interactive_elements(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snapshot_path = _write_snapshot(tmp_path, {"uid": "e2", "tag": "p", "text": "Hello"})

    assert main(_args(tmp_path, str(snapshot_path))) == 0
    assert "No interactive elements found in snapshot" in capsys.readouterr().out


def test_missing_and_malformed_snapshot(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(_args(tmp_path, str(tmp_path / "absent.json"))) == 1
    assert "Snapshot file not found" in capsys.readouterr().err

    broken = tmp_path / "broken.json"
    broken.write_text(json.dumps({"elements": "nope"}), encoding="utf-8")
    assert main(_args(tmp_path, str(broken))) == 1


def test_usage_error_exits_with_one() -> None:
    assert main([]) == 1
    assert main(["snapshot.json", "--min-valid", "many"]) == 1


def test_default_results_path() -> None:
    assert default_results_path(Path("/tmp/page.json")) == Path("/tmp/page-validation-results.json")
