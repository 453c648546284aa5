"""YAML run-config loader — parses, interpolates env vars, reshapes, and validates."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from agent_bench.config.domain.config import RunConfig
from agent_bench.config.domain.observer import ConfigObserver
from agent_bench.config.infrastructure.env_interpolation import interpolate
from agent_bench.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)

# Flat top-level YAML keys that live on ExecutionConfig.
_EXECUTION_KEYS: dict[str, str] = {
    "timeout": "timeout_seconds",
    "clone_timeout": "clone_timeout_seconds",
    "evaluator_timeout": "evaluator_timeout_seconds",
    "max_concurrent_evaluators": "max_concurrent_evaluators",
    "workspace_dir": "workspace_dir",
    "keep_workspace": "keep_workspace",
}


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns a RunConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> RunConfig:
        """
        Load a run config from ``path``.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the document violates the schema.
        """
        raw = _parse_yaml(path=path)
        interpolated = _interpolate(raw=raw)
        reshaped = _resolve_execution(_resolve_expected_reference(interpolated))
        cfg = _build_config(resolved=reshaped)
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(
            name=cfg.name,
            agent_type=cfg.agent.type,
            num_evaluators=len(cfg.evaluators),
        )
        return cfg


def _parse_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason=f"invalid YAML ({exc})") from exc

    if not isinstance(raw, dict):
        raise ConfigValidationError("top-level document must be a mapping")
    return raw


def _interpolate(raw: dict[str, Any]) -> dict[str, Any]:
    """Substitute ${ENV_VAR} references; unset ones raise MissingEnvVarsError together."""
    result = interpolate(raw)
    if result.missing:
        locations = result.missing_by_name()
        raise MissingEnvVarsError(missing_vars=list(locations), locations=locations)
    assert isinstance(result.value, dict)
    return result.value


def _resolve_expected_reference(interpolated: dict[str, Any]) -> dict[str, Any]:
    """
    Fold the flat ``expected_source`` / ``expected`` pair into one ``expected`` mapping.

    ``expected_source`` without ``expected`` is a config error; ``expected``
    without ``expected_source`` is read as a branch name.
    """
    data = dict(interpolated)
    source = data.pop("expected_source", None)
    expected = data.get("expected")

    if isinstance(expected, dict):
        return data

    if expected is None:
        if source is not None:
            raise ConfigValidationError(
                f"expected_source '{source}' is set but 'expected' is missing"
            )
        return data

    data["expected"] = {"kind": source or "branch", "identifier": expected}
    return data


def _resolve_execution(data: dict[str, Any]) -> dict[str, Any]:
    """Move flat execution keys into the nested ``execution`` mapping."""
    execution: dict[str, Any] = dict(data.pop("execution", None) or {})
    for yaml_key, field in _EXECUTION_KEYS.items():
        if yaml_key in data:
            execution[field] = data.pop(yaml_key)
    if execution:
        data["execution"] = execution
    return data


def _build_config(resolved: dict[str, Any]) -> RunConfig:
    try:
        return RunConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _emit_warnings(cfg: RunConfig, observer: ConfigObserver) -> None:
    if cfg.execution.keep_workspace:
        observer.config_workspace_retained_warning(
            workspace_dir=str(cfg.execution.workspace_dir)
        )
