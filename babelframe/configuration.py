"""Prepper-backed configuration loader for Babelframe."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping, Sequence

from dotenv import dotenv_values
from prepper import (
    Field,
    IoError,
    SchemaError,
    SchemaModel,
    ValidationError,
    model_validator,
)
from prepper.loaders import _parse_file, _path_to_source, discover_file_paths
from prepper.merge import merge_layer
from prepper.provenance import ProvenanceRecorder

from .errors import ConfigurationError
from .layout import PlacementPolicy

APP_NAME = "Babelframe"


class BabelframeConfig(SchemaModel):
    """Schema describing all supported configuration options."""

    LLM_PROVIDER: Literal["azure_openai", "openai"] = Field(
        default="openai",
        description="Large language model provider selection.",
    )
    AZURE_OPENAI_API_KEY: str | None = Field(default=None, secret=True)
    AZURE_OPENAI_ENDPOINT: str | None = Field(default=None)
    AZURE_OPENAI_API_VERSION: str | None = Field(default=None)
    AZURE_OPENAI_DEPLOYMENT_NAME: str | None = Field(default=None)
    OPENAI_API_KEY: str | None = Field(default=None, secret=True)
    BABELFRAME_MODEL: str | None = Field(
        default=None,
        description="Chat model used for translation (defaults to gpt-4o-mini).",
    )
    BABELFRAME_CONTEXT: str = Field(
        default="General app content",
        description="Short description of the design passed to the translator.",
    )
    BABELFRAME_PLACEMENT_GAP: int = Field(
        default=100,
        description="Vertical spacing between a frame and its translated copies.",
    )
    BABELFRAME_PLACEMENT_POLICY: Literal["auto", "incremental", "batch"] = Field(
        default="auto",
        description="How successive copies are placed; 'auto' picks per apply mode.",
    )
    BABELFRAME_PROVIDER_DEBUG: bool = Field(default=False)

    @model_validator(mode="before")
    def _normalise_choices(data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("LLM_PROVIDER")
            if isinstance(raw_value, str):
                normalized = raw_value.strip().lower().replace("-", "_")
                synonyms = {
                    "azure_open_ai": "azure_openai",
                    "azureopenai": "azure_openai",
                }
                normalized = synonyms.get(normalized, normalized)
                if normalized not in {"openai", "azure_openai"}:
                    normalized = "openai"
                data["LLM_PROVIDER"] = normalized
            raw_policy = data.get("BABELFRAME_PLACEMENT_POLICY")
            if isinstance(raw_policy, str):
                data["BABELFRAME_PLACEMENT_POLICY"] = raw_policy.strip().lower()
        return data


@lru_cache(maxsize=1)
def _load_settings(app_dir: Path | None = None) -> BabelframeConfig:
    """Load configuration layers once and cache the validated model."""

    base_dir = app_dir or Path.cwd()
    try:
        provenance = ProvenanceRecorder()
        combined = _load_discovered_yaml(app_dir=base_dir, provenance=provenance)
        _merge_env_sources(combined, provenance=provenance, app_dir=base_dir)

        model = BabelframeConfig.validate(combined, provenance=provenance)
        if model.BABELFRAME_PLACEMENT_GAP < 0:
            raise ConfigurationError(
                "BABELFRAME_PLACEMENT_GAP must not be negative."
            )
        return model
    except IoError as exc:
        raise ConfigurationError(
            f"Configuration files could not be read: {exc}"
        ) from exc
    except SchemaError as exc:
        raise ConfigurationError(
            f"Configuration schema error: {exc}"
        ) from exc
    except ValidationError as exc:
        issues = _format_validation_errors(exc.to_dict())
        raise ConfigurationError(issues) from exc


def _load_discovered_yaml(
    *,
    app_dir: Path,
    provenance: ProvenanceRecorder,
) -> dict[str, Any]:
    """Load YAML configuration files using Prepper's discovery rules."""

    result: dict[str, Any] = {}
    discovered = discover_file_paths(
        APP_NAME,
        "yaml",
        app_dir=app_dir,
        extra_paths=None,
    )
    for path, label in discovered:
        parsed = _parse_file(path, "yaml")
        if not isinstance(parsed, Mapping):
            raise IoError(
                f"Invalid configuration file {path}: expected a mapping at the root."
            )
        source = _path_to_source(label, "yaml", path)
        merge_layer(result, parsed, provenance=provenance, source=source, layer="file")
    return result


def _merge_env_sources(
    target: dict[str, Any],
    *,
    provenance: ProvenanceRecorder,
    app_dir: Path,
) -> None:
    """Merge ``.env`` values, then the process environment, over ``target``."""

    allowed = set(BabelframeConfig.__field_infos__.keys())
    layers: list[tuple[str, Mapping[str, str | None]]] = []
    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        layers.append((".env", dotenv_values(dotenv_path)))
    layers.append(("process", os.environ))

    for label, values in layers:
        for key in sorted(allowed & set(values)):
            value = values[key]
            if value is None:
                continue
            merge_layer(
                target,
                {key: value},
                provenance=provenance,
                source=f"env:{label}:{key}",
                layer="env",
            )


def _format_validation_errors(entries: Sequence[dict[str, Any]]) -> str:
    details: list[str] = []
    for entry in entries:
        path = entry.get("path") or []
        if isinstance(path, (list, tuple)):
            location = ".".join(str(part) for part in path if part not in {None, ""})
        else:
            location = str(path)
        message = str(entry.get("message") or entry.get("msg") or "Invalid value")
        source = entry.get("source")
        origin = f" (source: {source})" if source else ""
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}{origin}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def placement_policy_from(value: str | None) -> PlacementPolicy | None:
    """Translate a configured policy name; ``auto`` leaves the choice per mode."""

    normalized = (value or "auto").strip().lower()
    if normalized == "auto":
        return None
    try:
        return PlacementPolicy(normalized)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown placement policy '{value}'. Use auto, incremental or batch."
        ) from exc


def get_settings(app_dir: Path | None = None) -> BabelframeConfig:
    """Return the validated schema model for typed access."""

    return _load_settings(app_dir=app_dir)
