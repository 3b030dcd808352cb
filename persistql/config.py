"""
Config system - typed plugin configuration with layered loading.

A plugin runs in one of two modes, fixed at construction:

- :class:`Standalone` - the pass builds manifests itself and publishes them.
- :class:`Consumer` - the pass reads manifests published by a producer
  plugin it holds a reference to.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Union

from .faults import ConfigInvalidFault, ConfigMissingFault, FilesystemFault
from .hashing import DEFAULT_ALGORITHM, OperationHasher

if TYPE_CHECKING:
    from .plugin import PersistedQueryPlugin


# ============================================================================
# Modes
# ============================================================================


@dataclass(frozen=True)
class Standalone:
    """Generate and publish manifests from this pass's own modules."""

    kind: ClassVar[str] = "standalone"


@dataclass(frozen=True)
class Consumer:
    """Receive manifests from *producer* instead of generating them."""

    producer: "PersistedQueryPlugin"
    kind: ClassVar[str] = "consumer"


PluginMode = Union[Standalone, Consumer]


# ============================================================================
# PluginConfig
# ============================================================================


@dataclass
class PluginConfig:
    """
    Configuration of a :class:`~persistql.plugin.PersistedQueryPlugin`.

    Attributes:
        module_name: Path the virtual manifest module resolves at (required).
        filename: Asset name the manifest JSON is emitted under, if any.
        add_typename: Inject ``__typename`` selections before hashing.
        hash_algorithm: hashlib algorithm for operation ids.
        mode: Standalone or Consumer.
    """

    module_name: str = ""
    filename: Optional[str] = None
    add_typename: bool = False
    hash_algorithm: str = DEFAULT_ALGORITHM
    mode: PluginMode = field(default_factory=Standalone)

    FIELDS: ClassVar[tuple] = ("module_name", "filename", "add_typename", "hash_algorithm")

    def validate(self) -> "PluginConfig":
        """
        Fail fast on unusable configuration.

        Raises:
            ConfigMissingFault: If ``module_name`` is empty.
            ConfigInvalidFault: On a bad mode or hash algorithm.
        """
        if not self.module_name or not str(self.module_name).strip():
            raise ConfigMissingFault("module_name")
        if not isinstance(self.mode, (Standalone, Consumer)):
            raise ConfigInvalidFault(
                "mode",
                f"expected Standalone or Consumer, got {type(self.mode).__name__}",
            )
        if isinstance(self.mode, Consumer) and not hasattr(self.mode.producer, "coordinator"):
            raise ConfigInvalidFault("mode", "consumer producer must be a PersistedQueryPlugin")
        OperationHasher(self.hash_algorithm)
        return self

    @property
    def is_consumer(self) -> bool:
        return isinstance(self.mode, Consumer)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], *, mode: Optional[PluginMode] = None) -> "PluginConfig":
        unknown = sorted(set(data) - set(cls.FIELDS))
        if unknown:
            raise ConfigInvalidFault(unknown[0], "unknown configuration key")
        return cls(**data, mode=mode or Standalone())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_name": self.module_name,
            "filename": self.filename,
            "add_typename": self.add_typename,
            "hash_algorithm": self.hash_algorithm,
            "mode": self.mode.kind,
        }


# ============================================================================
# ConfigLoader
# ============================================================================


class ConfigLoader:
    """
    Loads and merges plugin configuration with precedence:
    overrides > environment variables > config file > defaults
    """

    TRUE_VALUES = ("1", "true", "yes", "on")
    FALSE_VALUES = ("0", "false", "no", "off", "")

    def __init__(self, env_prefix: str = "PERSISTQL_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        *,
        env_prefix: str = "PERSISTQL_",
        defaults: Optional[Dict[str, Any]] = None,
        overrides: Optional[Dict[str, Any]] = None,
        mode: Optional[PluginMode] = None,
    ) -> PluginConfig:
        """
        Load configuration from every source and validate it.

        Args:
            path: JSON config file (optional)
            env_prefix: Prefix for environment variables
            defaults: Values used when no other source sets them
            overrides: Manual overrides (highest precedence)
            mode: Plugin mode (Standalone when omitted)

        Returns:
            Validated PluginConfig
        """
        loader = cls(env_prefix=env_prefix)

        if defaults:
            loader.config_data.update(defaults)

        if path:
            loader._load_file(Path(path))

        loader._load_from_env()

        if overrides:
            loader.config_data.update(
                {key: value for key, value in overrides.items() if value is not None}
            )

        return PluginConfig.from_dict(loader.config_data, mode=mode).validate()

    def _load_file(self, path: Path) -> None:
        """Load config from a JSON file."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise FilesystemFault("read", str(path), str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise ConfigInvalidFault(str(path), f"invalid JSON ({exc.msg})") from exc

        if not isinstance(data, dict):
            raise ConfigInvalidFault(str(path), "config file must hold a JSON object")
        self.config_data.update(data)

    def _load_from_env(self) -> None:
        """Load config from PERSISTQL_* environment variables."""
        for key in PluginConfig.FIELDS:
            value = os.environ.get(self.env_prefix + key.upper())
            if value is not None:
                self.config_data[key] = self._parse_value(key, value)

    def _parse_value(self, key: str, value: str) -> Any:
        if key != "add_typename":
            return value
        lowered = value.strip().lower()
        if lowered in self.TRUE_VALUES:
            return True
        if lowered in self.FALSE_VALUES:
            return False
        raise ConfigInvalidFault(key, f"expected a boolean, got {value!r}")
