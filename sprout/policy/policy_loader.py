"""
sprout Policy Loader

Responsibilities:
- Load and validate command_policy.yaml
- Provide scaffold defaults (organization, languages, description)
- Provide the supported / disabled / unstable platform sets
- Resolve the profile of each scaffolding command
- Fail fast on invalid/missing policy
"""

import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

from ..runtime.errors import ConfigurationError


class PolicyValidationError(ConfigurationError):
    """Raised when policy file is invalid or missing required keys."""
    pass


@dataclass(frozen=True)
class CommandProfile:
    """How one scaffolding command behaves."""
    name: str
    allow_overwrite: bool
    default_platforms: Tuple[str, ...]
    refuse_existing_without_overwrite: bool
    include_existing_platforms: bool
    require_plugin_project: bool
    update_manifest: bool


class PolicyLoader:
    """Loads, validates, and provides access to the sprout command policy."""

    REQUIRED_KEYS = ["version", "defaults", "supported_platforms", "commands"]
    REQUIRED_DEFAULT_KEYS = ["organization", "android_language", "ios_language", "description"]
    REQUIRED_COMMAND_KEYS = [
        "allow_overwrite",
        "default_platforms",
        "refuse_existing_without_overwrite",
        "include_existing_platforms",
        "require_plugin_project",
        "update_manifest",
    ]

    def __init__(self, policy_path: Optional[Path] = None):
        if policy_path is None:
            policy_path = Path(__file__).parent / "command_policy.yaml"

        self.policy_path = Path(policy_path)
        self._policy: Optional[Dict[str, Any]] = None

    def load(self) -> Dict[str, Any]:
        """Load and validate the policy file. Raises PolicyValidationError on failure."""
        if not self.policy_path.exists():
            raise PolicyValidationError(f"Policy file not found: {self.policy_path}")

        try:
            self._policy = yaml.safe_load(self.policy_path.read_text())
        except yaml.YAMLError as e:
            raise PolicyValidationError(f"Invalid YAML in policy file: {e}")

        if self._policy is None:
            raise PolicyValidationError("Policy file is empty")

        self._validate()
        return self._policy

    def _validate(self):
        """Validate required keys and structure."""
        for key in self.REQUIRED_KEYS:
            if key not in self._policy:
                raise PolicyValidationError(f"Missing required key: {key}")

        defaults = self._policy.get("defaults") or {}
        for key in self.REQUIRED_DEFAULT_KEYS:
            if key not in defaults:
                raise PolicyValidationError(f"Missing required default: defaults.{key}")

        supported = self._policy.get("supported_platforms") or []
        if not supported:
            raise PolicyValidationError("supported_platforms must list at least one platform")

        # Platform lists may only name supported platforms
        for section in ("disabled_platforms", "unstable_platforms"):
            for platform in self._policy.get(section) or []:
                if platform not in supported:
                    raise PolicyValidationError(
                        f"{section} names unsupported platform '{platform}'"
                    )

        commands = self._policy.get("commands") or {}
        if not commands:
            raise PolicyValidationError("No commands defined")

        for command_name, command_config in commands.items():
            for key in self.REQUIRED_COMMAND_KEYS:
                if key not in (command_config or {}):
                    raise PolicyValidationError(
                        f"Missing required key in command '{command_name}': {key}"
                    )
            for platform in command_config["default_platforms"] or []:
                if platform not in supported:
                    raise PolicyValidationError(
                        f"Command '{command_name}' defaults to unsupported platform '{platform}'"
                    )

    @property
    def policy(self) -> Dict[str, Any]:
        """Get the loaded policy. Raises if not loaded."""
        if self._policy is None:
            raise RuntimeError("Policy not loaded. Call load() first.")
        return self._policy

    @property
    def version(self) -> str:
        return self.policy.get("version", "unknown")

    def get_default(self, key: str) -> Any:
        return self.policy.get("defaults", {}).get(key)

    def get_supported_platforms(self) -> List[str]:
        return list(self.policy.get("supported_platforms") or [])

    def get_disabled_platforms(self) -> List[str]:
        return list(self.policy.get("disabled_platforms") or [])

    def get_unstable_platforms(self) -> List[str]:
        return list(self.policy.get("unstable_platforms") or [])

    def list_commands(self) -> List[str]:
        return list(self.policy.get("commands", {}).keys())

    def get_command_profile(self, name: str) -> CommandProfile:
        """Get the profile of a scaffolding command."""
        commands = self.policy.get("commands", {})
        if name not in commands:
            raise PolicyValidationError(f"Command '{name}' not found in policy")

        config = commands[name]
        return CommandProfile(
            name=name,
            allow_overwrite=bool(config["allow_overwrite"]),
            default_platforms=tuple(config["default_platforms"] or ()),
            refuse_existing_without_overwrite=bool(config["refuse_existing_without_overwrite"]),
            include_existing_platforms=bool(config["include_existing_platforms"]),
            require_plugin_project=bool(config["require_plugin_project"]),
            update_manifest=bool(config["update_manifest"]),
        )


# Singleton instance for convenience
_default_loader: Optional[PolicyLoader] = None


def get_policy_loader(policy_path: Optional[Path] = None) -> PolicyLoader:
    """Get the policy loader singleton, creating and loading if needed."""
    global _default_loader

    if _default_loader is None or policy_path is not None:
        loader = PolicyLoader(policy_path)
        loader.load()
        if policy_path is None:
            _default_loader = loader
        return loader

    return _default_loader


def reset_policy_loader():
    """Reset the singleton (for testing)."""
    global _default_loader
    _default_loader = None
