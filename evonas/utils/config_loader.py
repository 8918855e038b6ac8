"""
Unified configuration loader for EvoNAS.

Configurations can be provided as dictionaries, JSON/YAML files, or YAML
strings and are merged on top of global defaults.  Every merged result is
checked against the schema in ``configs/config_default.yaml`` so a typo in a
key or a wrongly typed value fails early with the offending dotted key.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Union

import yaml
from omegaconf import DictConfig, OmegaConf

from evonas.exceptions import EvoNASConfigError

from .config_reference import CONFIG_SCHEMA, GLOBAL_CONFIG_PATH

ConfigLike = Union[str, Path, Mapping[str, Any], DictConfig]


@dataclass
class LoadedConfig:
    """Container that exposes both OmegaConf and plain-dict views."""

    data: DictConfig

    def to_dict(self) -> Dict[str, Any]:
        return OmegaConf.to_container(self.data, resolve=True)  # type: ignore[return-value]

    def section(self, name: str) -> Dict[str, Any]:
        return dict(self.to_dict().get(name) or {})

    def __getitem__(self, item: str) -> Any:
        return self.data[item]


def validate_config(config: Mapping[str, Any]) -> None:
    """Raise :class:`EvoNASConfigError` for unknown keys or mistyped values."""

    for section, entries in config.items():
        if section not in CONFIG_SCHEMA:
            raise EvoNASConfigError(
                f"Unknown configuration section '{section}'.",
                context={"key": section, "options": list(CONFIG_SCHEMA)},
            )
        if entries is None:
            continue
        if not isinstance(entries, Mapping):
            raise EvoNASConfigError(
                f"Configuration section '{section}' must be a mapping.",
                context={"key": section},
            )
        fields = CONFIG_SCHEMA[section]
        for key, value in entries.items():
            dotted = f"{section}.{key}"
            field = fields.get(key)
            if field is None:
                raise EvoNASConfigError(
                    f"Unknown configuration key '{dotted}'.",
                    context={"key": dotted, "options": list(fields)},
                )
            if not field.accepts(value):
                raise EvoNASConfigError(
                    f"Invalid value for '{dotted}': expected {field.type}, got {value!r}.",
                    context={"key": dotted, "value": value, "type": field.type},
                )


class ConfigLoader:
    """
    Load and merge EvoNAS configuration sources.

    Parameters
    ----------
    global_config : Optional[ConfigLike]
        Path or mapping containing default configuration values. Defaults to
        the ``global.yaml`` shipped with the package.
    """

    def __init__(self, global_config: Optional[ConfigLike] = GLOBAL_CONFIG_PATH) -> None:
        self._global_conf = self._coerce(global_config) if global_config is not None else OmegaConf.create({})

    def _coerce(self, source: ConfigLike) -> DictConfig:
        """Convert arbitrary config-like inputs into an OmegaConf instance."""
        if isinstance(source, DictConfig):
            return source
        if isinstance(source, Mapping):
            return OmegaConf.create(dict(source))
        if isinstance(source, Path):
            return self._load_path(source)
        if isinstance(source, str):
            potential_path = Path(source)
            if potential_path.suffix.lower() in {".yaml", ".yml", ".json"}:
                return self._load_path(potential_path)
            try:
                parsed = yaml.safe_load(source)
            except yaml.YAMLError as exc:
                raise EvoNASConfigError(f"Failed to parse configuration string: {exc}") from exc
            if not isinstance(parsed, MutableMapping):
                raise EvoNASConfigError("Configuration string must evaluate to a mapping.")
            return OmegaConf.create(dict(parsed))
        raise TypeError(f"Unsupported configuration source: {type(source)!r}")

    def _load_path(self, path: Path) -> DictConfig:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        suffix = path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            loaded = OmegaConf.load(path)
            return loaded if loaded is not None else OmegaConf.create({})
        if suffix == ".json":
            return OmegaConf.create(yaml.safe_load(path.read_text(encoding="utf-8")))
        raise EvoNASConfigError(
            f"Unsupported configuration file format: '{suffix}'. Expected YAML or JSON.",
            context={"path": str(path)},
        )

    def load(
        self,
        config: Optional[ConfigLike] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> LoadedConfig:
        """Merge global defaults with optional additional configuration and overrides."""

        merged = self._global_conf.copy()

        if config is not None:
            merged = OmegaConf.merge(merged, self._coerce(config))

        if overrides:
            merged = OmegaConf.merge(merged, dict(overrides))

        loaded = LoadedConfig(merged)
        validate_config(loaded.to_dict())
        return loaded
