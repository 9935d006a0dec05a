"""Configuration classes for selective XML extraction.

This module provides configuration objects for every layer of an extraction
run: tokenization, span matching, output documents, input download and global
settings. Component configs validate themselves in ``__post_init__``; the
aggregate :class:`ExtractorConfig` is immutable and supports JSON round trips
so the command line can load it from a file and then apply flag overrides.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

DEFAULT_ROOT_TAG = "root"
VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_COMPONENTS = ["tokenizer", "extraction", "output", "download", "global_"]


def _check_tag_name(value: str, field_name: str) -> None:
    if any(char.isspace() or char in "<>/&\"'=" for char in value):
        raise ValueError(f"{field_name} is not a valid element name: {value!r}")


@dataclass
class TokenizerConfig:
    """Configuration for the pull tokenizer."""

    buffer_size: int = 65536

    def __post_init__(self) -> None:
        """Validate tokenizer configuration."""
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be > 0")


@dataclass
class ExtractionConfig:
    """Configuration for span selection.

    An empty ``parent_name`` is allowed here so that a configuration file can
    omit it; the extractor refuses to run without one.
    """

    parent_name: str = ""
    child_name: str = ""
    restrict_to_child: bool = False

    def __post_init__(self) -> None:
        """Validate extraction configuration."""
        _check_tag_name(self.parent_name, "parent_name")
        _check_tag_name(self.child_name, "child_name")
        if self.restrict_to_child and not self.child_name:
            raise ValueError("restrict_to_child requires a child_name")


@dataclass
class OutputConfig:
    """Configuration for serialized output documents."""

    output_dir: str = "output"
    chunk_size: int = 0  # 0 means a single document holding every fragment
    root_tag: str = DEFAULT_ROOT_TAG

    def __post_init__(self) -> None:
        """Validate output configuration."""
        if self.chunk_size < 0:
            raise ValueError("chunk_size must be >= 0")
        if not self.root_tag:
            raise ValueError("root_tag cannot be empty")
        _check_tag_name(self.root_tag, "root_tag")
        if not self.output_dir:
            raise ValueError("output_dir cannot be empty")


@dataclass
class DownloadConfig:
    """Configuration for fetching input documents over HTTP."""

    timeout_seconds: float = 60.0
    chunk_size: int = 65536
    user_agent: str = "selective-xml-extractor/0.1.0"
    temp_dir: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate download configuration."""
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")


@dataclass
class GlobalConfig:
    """Settings that apply across all components."""

    logging_level: str = "WARNING"
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ValueError(f"logging_level must be one of {VALID_LOGGING_LEVELS}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ExtractorConfig:
    """Complete configuration for one extraction run.

    Thread-safe due to frozen dataclass implementation; use :meth:`override`
    to derive modified copies.
    """

    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            for component in _COMPONENTS:
                getattr(self, component).__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "ExtractorConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: ``component__field`` keyword arguments

        Returns:
            New ExtractorConfig instance with overrides applied

        Example:
            >>> config = ExtractorConfig()
            >>> new_config = config.override(
            ...     extraction__parent_name="job",
            ...     output__chunk_size=500,
            ... )
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        for key, value in kwargs.items():
            # "global_" itself ends in an underscore, so match on whole prefixes
            component = next(
                (name for name in _COMPONENTS if key.startswith(f"{name}__")), None
            )
            if component is None:
                raise ConfigValidationError(
                    f"Unknown configuration override: {key}",
                    field_name=key,
                    suggestions=[f"{name}__<field>" for name in _COMPONENTS],
                )
            field_name = key[len(component) + 2:]
            nested_overrides.setdefault(component, {})[field_name] = value

        new_fields = {}
        for component, overrides in nested_overrides.items():
            try:
                new_fields[component] = replace(getattr(self, component), **overrides)
            except TypeError as e:
                raise ConfigValidationError(str(e), field_name=component) from e
            except ValueError as e:
                raise ConfigValidationError(str(e), field_name=component) from e

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractorConfig":
        """Create configuration from dictionary.

        Unknown components or fields are rejected so that a typo in a
        configuration file does not silently fall back to a default.
        """
        unknown = set(data) - set(_COMPONENTS)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration sections: {sorted(unknown)}",
                suggestions=list(_COMPONENTS),
            )

        components: Dict[str, Any] = {}
        for component, field_info in cls.__dataclass_fields__.items():
            if component not in data:
                continue
            section = data[component]
            if not isinstance(section, dict):
                raise ConfigValidationError(
                    f"Configuration section {component} must be an object",
                    field_name=component,
                )
            try:
                components[component] = field_info.type(**section)
            except TypeError as e:
                raise ConfigValidationError(str(e), field_name=component) from e
            except ValueError as e:
                raise ConfigValidationError(str(e), field_name=component) from e

        return cls(**components)

    @classmethod
    def from_json(cls, json_str: str) -> "ExtractorConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)
