from .config import DEFAULT_CONFIG, LocatorConfig, load_locator_config, save_locator_config
from .framework_detector import detect_component_framework
from .locator_generator import generate_locators
from .locator_validator import validate_locators, validate_selector
from .models import (
    ComponentFramework,
    GeneratedLocators,
    LocatorGenerationOptions,
    ValidationOptions,
    ValidationReport,
    ValidationResult,
    WorkflowResult,
)
from .snapshot import ElementNode, Snapshot, SnapshotFormatError, load_snapshot, parse_snapshot
from .validation_workflow import batch_validate_locators, generate_and_validate_locators

__version__ = "0.1.0"

__all__ = [
    "ComponentFramework",
    "DEFAULT_CONFIG",
    "ElementNode",
    "GeneratedLocators",
    "LocatorConfig",
    "LocatorGenerationOptions",
    "Snapshot",
    "SnapshotFormatError",
    "ValidationOptions",
    "ValidationReport",
    "ValidationResult",
    "WorkflowResult",
    "batch_validate_locators",
    "detect_component_framework",
    "generate_and_validate_locators",
    "generate_locators",
    "load_locator_config",
    "load_snapshot",
    "parse_snapshot",
    "save_locator_config",
    "validate_locators",
    "validate_selector",
]
