from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import json
from pathlib import Path
import tempfile

CONFIG_DIR = Path.home() / ".snaplocator"
CONFIG_PATH = CONFIG_DIR / "config.json"


@dataclass(frozen=True, slots=True)
class LocatorConfig:
    """Tunable thresholds for generation and validation.

    The defaults are the documented boundaries the heuristics were tuned
    against; tests pin them, so change them through a config file rather
    than in code.
    """

    max_selectors: int = 5
    framework_ancestor_depth: int = 5
    label_ancestor_depth: int = 5
    placeholder_ancestor_depth: int = 3
    max_text_length: int = 100
    contains_prefix_length: int = 20
    contains_min_length: int = 10
    hex_run_length: int = 32
    hashed_class_min_length: int = 10
    short_class_max_length: int = 20
    min_valid_selectors: int = 2
    require_css: bool = True
    require_xpath: bool = True


DEFAULT_CONFIG = LocatorConfig()


def _coerce_field(name: str, raw: object, default: object) -> object:
    if isinstance(default, bool):
        return raw if isinstance(raw, bool) else default
    if isinstance(default, int):
        if isinstance(raw, bool) or not isinstance(raw, int):
            return default
        if name == "min_valid_selectors":
            return raw if raw >= 0 else default
        return raw if raw > 0 else default
    return default


def load_locator_config(config_path: Path | None = None) -> LocatorConfig:
    path = config_path or CONFIG_PATH
    if not path.exists() or not path.is_file():
        return DEFAULT_CONFIG

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError, UnicodeDecodeError):
        return DEFAULT_CONFIG

    if not isinstance(payload, dict):
        return DEFAULT_CONFIG

    values: dict[str, object] = {}
    for item in fields(LocatorConfig):
        default = getattr(DEFAULT_CONFIG, item.name)
        if item.name not in payload:
            continue
        values[item.name] = _coerce_field(item.name, payload[item.name], default)
    return LocatorConfig(**values)  # type: ignore[arg-type]


def save_locator_config(config: LocatorConfig, config_path: Path | None = None) -> tuple[bool, str | None]:
    path = config_path or CONFIG_PATH

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return False, f"Could not create config folder: {exc}"

    payload = json.dumps(asdict(config), ensure_ascii=True, indent=2, sort_keys=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(payload)
            handle.flush()
            temp_path = Path(handle.name)

        if temp_path is None:
            return False, "Could not create temporary config file."
        temp_path.replace(path)
    except OSError as exc:
        if temp_path and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        return False, f"Could not write locator config: {exc}"

    return True, None
