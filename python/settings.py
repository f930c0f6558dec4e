import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)

# Recognised parameter keys and their accepted types. A trailing "?" marks a
# nullable type and "|" separates alternatives.
PARAMETER_SCHEMA: Dict[str, str] = {
    "backupTargetdirectory": "string",
    "zipSaveLocation": "string",
    "customZipName": "string?",
    "replace": "bool",
    "useCompression": "bool",
    "includeDotFile": "bool",
    "excludeDir": "array",
    "excludeExtensions": "array",
    "includeExtensions": "array",
    "beforeDate": "string",
    "afterDate": "string",
    "memoryCap": "string",
    "autoStart": "bool",
    "useRelativeNames": "bool",
    "logLocation": "string",
}

# Parameter key -> BackupConfig attribute
_FIELD_NAMES: Dict[str, str] = {
    "backupTargetdirectory": "target_directory",
    "zipSaveLocation": "destination_directory",
    "customZipName": "custom_name",
    "replace": "replace_existing",
    "useCompression": "use_compression",
    "includeDotFile": "include_dot_files",
    "excludeDir": "exclude_dirs",
    "excludeExtensions": "exclude_extensions",
    "includeExtensions": "include_extensions",
    "beforeDate": "before_date",
    "afterDate": "after_date",
    "memoryCap": "memory_cap",
    "autoStart": "auto_start",
    "useRelativeNames": "use_relative_names",
    "logLocation": "log_location",
}

_EXTENSION_KEYS = ("excludeExtensions", "includeExtensions")


@dataclass(frozen=True)
class BackupConfig:
    """Validated, read-only parameters for one backup run."""

    target_directory: str = ""
    destination_directory: str = ""
    custom_name: Optional[str] = None
    replace_existing: bool = False
    use_compression: bool = True
    include_dot_files: bool = False
    exclude_dirs: Tuple[str, ...] = ()
    exclude_extensions: Tuple[str, ...] = ()
    include_extensions: Tuple[str, ...] = ()
    before_date: str = ""
    after_date: str = ""
    memory_cap: str = ""
    auto_start: bool = True
    use_relative_names: bool = True
    log_location: str = ""

    @property
    def has_conflicting_extension_filters(self) -> bool:
        return bool(self.exclude_extensions) and bool(self.include_extensions)


@dataclass
class ValidationResult:
    config: BackupConfig
    rejected: List[str] = field(default_factory=list)


def _match_single_type(value: Any, type_name: str) -> bool:
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "bool":
        return isinstance(value, bool)
    if type_name == "int":
        return isinstance(value, int) and not isinstance(value, bool)
    if type_name == "float":
        return isinstance(value, float)
    if type_name == "array":
        return isinstance(value, (list, tuple))
    if type_name == "object":
        return isinstance(value, dict)
    if type_name == "mixed":
        return True
    return False


def matches_type(value: Any, descriptor: str) -> bool:
    """Return True if value satisfies one branch of a "type?|type" descriptor."""
    for type_name in descriptor.split("|"):
        type_name = type_name.strip()
        nullable = type_name.endswith("?")
        if nullable:
            type_name = type_name[:-1]
            if value is None:
                return True
        if _match_single_type(value, type_name):
            return True
    return False


def normalize_extension(item: Any) -> str:
    return str(item).strip().lower().lstrip(".")


def _normalize_value(key: str, value: Any) -> Any:
    if key in _EXTENSION_KEYS:
        return tuple(normalize_extension(item) for item in value)
    if key == "excludeDir":
        return tuple(str(item) for item in value)
    if isinstance(value, list):
        return tuple(value)
    return value


def validate_parameters(raw: Dict[str, Any]) -> ValidationResult:
    """
    Validate a raw parameter bag against PARAMETER_SCHEMA.

    Unknown keys are ignored. A recognised key whose value has the wrong type
    is rejected with a warning and its default is kept.
    """
    values: Dict[str, Any] = {}
    rejected: List[str] = []

    for key, value in (raw or {}).items():
        expected = PARAMETER_SCHEMA.get(key)
        if expected is None:
            continue

        if matches_type(value, expected):
            values[_FIELD_NAMES[key]] = _normalize_value(key, value)
        else:
            logger.warning(
                "Param %s is not supported (expected %s, got %s)",
                key,
                expected,
                type(value).__name__,
            )
            rejected.append(key)

    return ValidationResult(config=BackupConfig(**values), rejected=rejected)


def load_parameters_file(path: str) -> Dict[str, Any]:
    """
    Loads a JSON parameter bag from the given file path.

    :param path: The path to the JSON file.
    :return: The parsed mapping, or an empty dict if the file is missing or invalid.
    """
    if not os.path.isfile(path):
        logger.error("Parameter file not found at '%s'", path)
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.error("Error loading JSON file '%s': %s", path, e)
        return {}

    if not isinstance(data, dict):
        logger.error("Parameter file '%s' must contain a JSON object", path)
        return {}

    logger.info("Parameters loaded from '%s'.", path)
    return data
