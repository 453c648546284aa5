"""${ENV_VAR} interpolation for raw YAML run configs.

One walk over the document substitutes every variable that is set and records
where each unset one is referenced, so a config error can name the offending
keys (``agent.config.command[0]``) rather than just the variable.
"""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

type RawValue = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


@dataclass(frozen=True)
class MissingReference:
    name: str
    key_path: str


@dataclass(frozen=True)
class Interpolation:
    value: RawValue
    missing: list[MissingReference]

    def missing_by_name(self) -> dict[str, list[str]]:
        """Variable name -> key paths referencing it, both in first-seen order."""
        locations: dict[str, list[str]] = {}
        for ref in self.missing:
            paths = locations.setdefault(ref.name, [])
            if ref.key_path not in paths:
                paths.append(ref.key_path)
        return locations


def interpolate(
    data: RawValue, environ: Mapping[str, str] | None = None
) -> Interpolation:
    """Substitute set variables; unset references are left verbatim and reported."""
    env = os.environ if environ is None else environ
    missing: list[MissingReference] = []
    value = _walk(data, key_path="", env=env, missing=missing)
    return Interpolation(value=value, missing=missing)


def _walk(
    data: RawValue, key_path: str, env: Mapping[str, str], missing: list[MissingReference]
) -> RawValue:
    if isinstance(data, str):
        return _substitute(data, key_path=key_path, env=env, missing=missing)
    if isinstance(data, list):
        return [
            _walk(item, key_path=f"{key_path}[{i}]", env=env, missing=missing)
            for i, item in enumerate(data)
        ]
    if isinstance(data, dict):
        return {
            key: _walk(
                value,
                key_path=f"{key_path}.{key}" if key_path else str(key),
                env=env,
                missing=missing,
            )
            for key, value in data.items()
        }
    return data


def _substitute(
    text: str, key_path: str, env: Mapping[str, str], missing: list[MissingReference]
) -> str:
    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in env:
            return env[name]
        missing.append(MissingReference(name=name, key_path=key_path or "<root>"))
        return match.group(0)

    return _ENV_VAR_PATTERN.sub(replace, text)
