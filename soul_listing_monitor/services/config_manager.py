"""
Configuration management system for the Soul Listing Monitor.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..models.config import (
    Configuration,
    CursorConfig,
    MarketplaceConfig,
    SystemConfig,
    Thresholds,
    TraitFilterConfig,
)


class ConfigurationManager:
    """Manages loading, validation, and reloading of system configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, uses default paths.
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Configuration] = None
        self._last_modified: Optional[float] = None

    def _find_config_file(self) -> str:
        """Find the configuration file in standard locations."""
        possible_paths = [
            "config/config.yaml",
            "config/config.yml",
            "config/config.json",
            "config.yaml",
            "config.yml",
            "config.json",
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        if os.path.exists("config/config.example.yaml"):
            raise ValueError(
                "No configuration file found. Please copy 'config/config.example.yaml' "
                "to 'config/config.yaml' and customize it for your needs."
            )

        raise ValueError(
            "No configuration file found. Please create a configuration file "
            "at one of these locations: " + ", ".join(possible_paths)
        )

    def _read_file(self, path: str) -> Any:
        with open(path, "r", encoding="utf-8") as f:
            if path.endswith(".json"):
                return json.load(f)
            return yaml.safe_load(f)

    def load_config(self) -> Configuration:
        """
        Load configuration from file.

        Returns:
            Configuration object with validated settings.

        Raises:
            ValueError: If configuration is invalid or file cannot be read.
            FileNotFoundError: If configuration file doesn't exist.
        """
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            raw_config = self._read_file(self.config_path) or {}
            if not isinstance(raw_config, dict):
                raise ValueError("Configuration root must be a mapping")

            raw_config = self._expand_env_vars(raw_config)

            config = self._parse_config(raw_config)
            config.validate()

            self._config = config
            self._last_modified = os.path.getmtime(self.config_path)

            return config

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")
        except Exception as e:
            raise ValueError(f"Error loading configuration: {e}")

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR_NAME} strings from the environment."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            if obj.startswith("${") and obj.endswith("}"):
                var_name = obj[2:-1]
                env_value = os.getenv(var_name)
                if env_value is None:
                    raise ValueError(f"Environment variable '{var_name}' not found")
                return env_value
            return obj
        else:
            return obj

    def _section(self, raw_config: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = raw_config.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Configuration section '{name}' must be a mapping")
        return section

    def _parse_bool(self, value: Any, name: str) -> bool:
        """Accept YAML booleans and their string forms after env expansion."""
        if value is None or isinstance(value, bool):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "yes", "on", "1"):
                return True
            if lowered in ("false", "no", "off", "0", ""):
                return False
        raise ValueError(f"'{name}' must be a boolean, got {value!r}")

    def _parse_trait_values(self, category: str, values: Any) -> Dict[str, bool]:
        """Accept either {value: enabled} or a list of enabled values."""
        if values is None:
            return {}
        if isinstance(values, list):
            return {str(value): True for value in values}
        if isinstance(values, dict):
            return {str(value): enabled for value, enabled in values.items()}
        raise ValueError(f"Trait values for '{category}' must be a mapping or a list")

    def _load_trait_table(self, path: str) -> Dict[str, Any]:
        """Load an external trait filter table."""
        if not os.path.exists(path):
            raise FileNotFoundError(f"Trait filter file not found: {path}")

        table = self._read_file(path) or {}
        if not isinstance(table, dict):
            raise ValueError(f"Trait filter file root must be a mapping: {path}")

        if "categories" in table or "trait_type_map" in table:
            return table
        return {"categories": table}

    def _parse_trait_filter(self, trait_data: Dict[str, Any]) -> TraitFilterConfig:
        categories: Dict[str, Dict[str, bool]] = {}
        trait_type_map: Dict[str, str] = {}

        file_path = trait_data.get("file")
        sources = []
        if file_path:
            sources.append(self._load_trait_table(str(file_path)))
        sources.append(trait_data)

        # Inline entries override the external table
        for source in sources:
            for category, values in (source.get("categories") or {}).items():
                category_key = str(category).strip().lower()
                categories.setdefault(category_key, {}).update(
                    self._parse_trait_values(category_key, values)
                )
            for trait_type, category in (source.get("trait_type_map") or {}).items():
                trait_type_map[str(trait_type).strip().lower()] = str(category).strip().lower()

        return TraitFilterConfig(
            enabled=self._parse_bool(trait_data.get("enabled"), "trait_filter.enabled"),
            combine=self._parse_bool(trait_data.get("combine"), "trait_filter.combine"),
            file=str(file_path) if file_path else None,
            categories=categories,
            trait_type_map=trait_type_map,
        )

    def _parse_config(self, raw_config: Dict[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""
        try:
            marketplace_data = self._section(raw_config, "marketplace")
            defaults = MarketplaceConfig()
            marketplace = MarketplaceConfig(
                base_url=marketplace_data.get("base_url", defaults.base_url),
                collection=marketplace_data.get("collection", defaults.collection),
                item_url_template=marketplace_data.get(
                    "item_url_template", defaults.item_url_template
                ),
                request_timeout=float(
                    marketplace_data.get("request_timeout", defaults.request_timeout)
                ),
                max_concurrent_requests=int(
                    marketplace_data.get(
                        "max_concurrent_requests", defaults.max_concurrent_requests
                    )
                ),
            )

            threshold_data = self._section(raw_config, "thresholds")
            thresholds = Thresholds(
                price_max=float(threshold_data.get("price_max", 10.0)),
                rarity_min=float(threshold_data.get("rarity_min", 100.0)),
                rank_min=int(threshold_data.get("rank_min", 1000)),
            )

            trait_filter = self._parse_trait_filter(
                self._section(raw_config, "trait_filter")
            )

            cursor_data = self._section(raw_config, "cursors")
            cursors = CursorConfig(
                seed=list(cursor_data.get("seed", [""])),
                refresh_interval=float(cursor_data.get("refresh_interval", 60.0)),
                refresh_jitter=float(cursor_data.get("refresh_jitter", 5.0)),
                max_pages=int(cursor_data.get("max_pages", 200)),
                backoff_base=float(cursor_data.get("backoff_base", 2.0)),
                backoff_max=float(cursor_data.get("backoff_max", 120.0)),
            )

            system_data = self._section(raw_config, "system")
            system = SystemConfig(
                poll_interval=float(system_data.get("poll_interval", 5.0)),
                sort_key=str(system_data.get("sort_key", "rank")),
                log_dir=str(system_data.get("log_dir", "logs")),
                log_level=str(system_data.get("log_level", "INFO")),
            )

            return Configuration(
                rarity_file=str(raw_config.get("rarity_file", "soul_top2500.json")),
                marketplace=marketplace,
                thresholds=thresholds,
                trait_filter=trait_filter,
                cursors=cursors,
                system=system,
            )

        except (TypeError, ValueError) as e:
            raise ValueError(f"Error parsing configuration: {e}")

    def get_config(self) -> Configuration:
        """
        Get current configuration, loading if necessary.

        Returns:
            Current configuration object.
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_if_changed(self) -> bool:
        """
        Reload configuration if file has been modified.

        Returns:
            True if configuration was reloaded, False otherwise.
        """
        if not os.path.exists(self.config_path):
            return False

        current_modified = os.path.getmtime(self.config_path)

        if self._last_modified is None or current_modified > self._last_modified:
            try:
                self.load_config()
                return True
            except ValueError:
                # Keep the current configuration if the new file is invalid
                return False

        return False

    def validate_config_file(self, config_path: str) -> bool:
        """
        Validate a configuration file without loading it.

        Raises:
            ValueError: If configuration is invalid with detailed error message.
        """
        if not Path(config_path).exists():
            raise ValueError(f"Configuration file not found: {config_path}")

        try:
            raw_config = self._read_file(config_path) or {}
            if not isinstance(raw_config, dict):
                raise ValueError("Configuration root must be a mapping")

            # Missing env vars are tolerated when only validating
            try:
                raw_config = self._expand_env_vars(raw_config)
            except ValueError:
                pass

            self._parse_config(raw_config).validate()
            return True

        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}")

    def get_config_template(self) -> Dict[str, Any]:
        """
        Get a template configuration dictionary.

        Returns:
            Dictionary with example configuration structure.
        """
        return {
            "marketplace": {
                "base_url": MarketplaceConfig().base_url,
                "collection": "Solana Souls",
                "item_url_template": "https://digitaleyes.market/item/{mint}",
                "request_timeout": 100,
                "max_concurrent_requests": 32,
            },
            "rarity_file": "soul_top2500.json",
            "thresholds": {"price_max": 10, "rarity_min": 100, "rank_min": 1000},
            "trait_filter": {
                "enabled": False,
                "combine": False,
                "file": "config/trait_filters.yaml",
            },
            "cursors": {
                "seed": [""],
                "refresh_interval": 60,
                "refresh_jitter": 5,
                "max_pages": 200,
                "backoff_base": 2,
                "backoff_max": 120,
            },
            "system": {
                "poll_interval": 5,
                "sort_key": "rank",
                "log_dir": "logs",
                "log_level": "INFO",
            },
        }
