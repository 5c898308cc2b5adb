"""
Configuration management for yalv.

This module provides configuration file support with YAML format,
user preferences, and default settings.

Features:
- YAML configuration file at ~/.config/yalv/config.yaml
- Default values with user overrides
- Keybinding customization (several keys per action)
- virsh binary / connection URI / address sources
- Log location and level override

Architecture:
- ConfigManager: Main configuration interface
- Merges user config with defaults
- Provides typed access to settings
- Handles missing/invalid config gracefully
"""

import yaml
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class KeyBindings:
    """Customizable key bindings. Each action accepts several key names."""
    quit: List[str] = field(default_factory=lambda: ["q", "esc"])
    up: List[str] = field(default_factory=lambda: ["up", "k"])
    down: List[str] = field(default_factory=lambda: ["down", "j"])
    console: List[str] = field(default_factory=lambda: ["enter"])
    ssh: List[str] = field(default_factory=lambda: ["s"])
    start: List[str] = field(default_factory=lambda: ["u"])
    shutdown: List[str] = field(default_factory=lambda: ["d"])
    toggle_inactive: List[str] = field(default_factory=lambda: ["a"])
    help: List[str] = field(default_factory=lambda: ["?"])
    confirm: List[str] = field(default_factory=lambda: ["y", "Y", "enter"])
    deny: List[str] = field(default_factory=lambda: ["n", "N"])
    cancel: List[str] = field(default_factory=lambda: ["esc"])
    submit: List[str] = field(default_factory=lambda: ["enter"])
    backspace: List[str] = field(default_factory=lambda: ["backspace"])


@dataclass
class UIConfig:
    """UI-related configuration."""
    refresh_interval: int = 3000  # milliseconds
    show_inactive: bool = False


@dataclass
class VirshConfig:
    """virsh / ssh invocation settings."""
    binary: str = "virsh"
    connect_uri: Optional[str] = None
    ssh_binary: str = "ssh"
    address_sources: List[str] = field(default_factory=lambda: ["lease", "arp", "agent"])


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file_path: Optional[str] = None  # None for default


@dataclass
class AppConfig:
    """Main application configuration."""
    keybindings: KeyBindings = field(default_factory=KeyBindings)
    ui: UIConfig = field(default_factory=UIConfig)
    virsh: VirshConfig = field(default_factory=VirshConfig)
    logging: LogConfig = field(default_factory=LogConfig)


class ConfigManager:
    """Configuration manager with YAML file support."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = config_dir or Path.home() / ".config" / "yalv"
        self.config_file = self.config_dir / "config.yaml"
        self._config: AppConfig = AppConfig()
        self.load_config()

    def load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if self.config_file.exists():
                with open(self.config_file, 'r') as f:
                    user_config = yaml.safe_load(f) or {}

                self._config = self._merge_configs(AppConfig(), user_config)
                logger.debug(f"Loaded configuration from {self.config_file}")
            else:
                self.save_config()
                logger.info(f"Created default configuration at {self.config_file}")
        except Exception as e:
            logger.error(f"Failed to load config: {e}, using defaults")
            self._config = AppConfig()

    def save_config(self) -> None:
        """Save current configuration to YAML file."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w') as f:
                yaml.safe_dump(asdict(self._config), f, default_flow_style=False, indent=2)
            logger.debug(f"Saved configuration to {self.config_file}")
        except Exception as e:
            logger.error(f"Failed to save config: {e}")

    def get_config(self) -> AppConfig:
        """Get current configuration."""
        return self._config

    def _merge_configs(self, default: AppConfig, user: Dict[str, Any]) -> AppConfig:
        """Merge user config with defaults."""
        if not isinstance(user, dict):
            raise ValueError("configuration root must be a mapping")
        if isinstance(user.get('keybindings'), dict):
            bindings = {
                action: [keys] if isinstance(keys, str) else keys
                for action, keys in user['keybindings'].items()
            }
            self._merge_dataclass(default.keybindings, bindings)
        if isinstance(user.get('ui'), dict):
            self._merge_dataclass(default.ui, user['ui'])
        if isinstance(user.get('virsh'), dict):
            self._merge_dataclass(default.virsh, user['virsh'])
        if isinstance(user.get('logging'), dict):
            self._merge_dataclass(default.logging, user['logging'])

        return default

    def _merge_dataclass(self, obj: Any, updates: Dict[str, Any]) -> None:
        """Merge updates into dataclass object, ignoring unknown keys."""
        known = {f.name for f in fields(obj)}
        for key, value in updates.items():
            if key in known:
                setattr(obj, key, value)
            else:
                logger.warning(f"Ignoring unknown config key '{key}'")

    def get_key_bindings(self, action: str) -> List[str]:
        """Get key names bound to action."""
        return list(getattr(self._config.keybindings, action, []))

    def is_key_binding(self, key: str, action: str) -> bool:
        """Check if key matches one of the bindings for action.

        Named keys ("enter", "esc") compare case-insensitively; single
        characters are case-sensitive so "u" and "U" can differ.
        """
        for binding in self.get_key_bindings(action):
            if len(binding) > 1 and key.lower() == binding.lower():
                return True
            if key == binding:
                return True
        return False

    def get_log_level(self) -> str:
        """Get configured log level."""
        return self._config.logging.level.upper()

    def get_custom_log_path(self) -> Optional[str]:
        """Get custom log file path if configured."""
        return self._config.logging.file_path

    def get_refresh_interval(self) -> int:
        """Get UI refresh interval in milliseconds."""
        return self._config.ui.refresh_interval

    def should_show_inactive(self) -> bool:
        """Check if inactive domains are listed at startup."""
        return bool(self._config.ui.show_inactive)

    def get_virsh_command(self) -> List[str]:
        """Get the virsh argv prefix, including the connection URI if set."""
        cmd = [self._config.virsh.binary]
        if self._config.virsh.connect_uri:
            cmd += ["-c", self._config.virsh.connect_uri]
        return cmd

    def get_ssh_binary(self) -> str:
        return self._config.virsh.ssh_binary

    def get_address_sources(self) -> List[str]:
        return list(self._config.virsh.address_sources)


# Global config instance
config_manager = ConfigManager()
