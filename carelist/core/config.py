"""
Configuration management for the Care Worklist engine
Handles loading and saving facility settings and caregiver preferences
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, List, Optional

from carelist.core.models import ActivityKind, SortKey, StatusFilter


class Config:
    """Configuration manager for the worklist engine"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager

        Args:
            config_dir: Path to configuration directory (defaults to
                $CARELIST_CONFIG_DIR, then ./config)
        """
        if config_dir is None:
            env_dir = os.environ.get("CARELIST_CONFIG_DIR")
            config_dir = Path(env_dir) if env_dir else Path.cwd() / "config"

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.settings_file = self.config_dir / "settings.json"
        self.preferences_file = self.config_dir / "preferences.json"

        # Load configurations
        self.settings = self._load_json(self.settings_file, self._default_settings())
        self.preferences = self._load_json(self.preferences_file, self._default_preferences())

    def _load_json(self, file_path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
        """Load JSON file or return default if file doesn't exist"""
        if file_path.exists():
            with open(file_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
            # Fill keys added since the file was written
            return {**default, **loaded}
        else:
            # Create file with defaults
            self._save_json(file_path, default)
            return default

    def _save_json(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Save data to JSON file"""
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _default_settings(self) -> Dict[str, Any]:
        """Default system settings"""
        return {
            "facility_timezone": "Asia/Ho_Chi_Minh",
            "api_base_url": "http://localhost:8000",
            "fetch_timeout_seconds": 10.0,
            "fixture_path": None,
        }

    def _default_preferences(self) -> Dict[str, Any]:
        """Default caregiver preferences"""
        return {
            "default_sort": SortKey.DUE_TIME.value,
            "default_status_filter": StatusFilter.ALL.value,
            "kind_priority": [
                ActivityKind.VITAL_SIGNS.value,
                ActivityKind.ASSESSMENT.value,
            ],
        }

    def get(self, key: str, section: str = "settings", default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            key: Configuration key
            section: Configuration section ('settings', 'preferences')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        section_map = {
            "settings": self.settings,
            "preferences": self.preferences
        }

        return section_map.get(section, {}).get(key, default)

    def set(self, key: str, value: Any, section: str = "settings") -> None:
        """
        Set configuration value and save to disk

        Args:
            key: Configuration key
            value: Value to set
            section: Configuration section ('settings', 'preferences')
        """
        section_map = {
            "settings": (self.settings, self.settings_file),
            "preferences": (self.preferences, self.preferences_file)
        }

        if section in section_map:
            config_dict, file_path = section_map[section]
            config_dict[key] = value
            self._save_json(file_path, config_dict)

    @property
    def facility_timezone(self) -> str:
        return self.get("facility_timezone", default="Asia/Ho_Chi_Minh")

    @property
    def fetch_timeout(self) -> float:
        return float(self.get("fetch_timeout_seconds", default=10.0))

    def get_access_token(self) -> Optional[str]:
        """Session token from the environment; None means signed out"""
        token = os.environ.get("CARELIST_ACCESS_TOKEN")
        return token or None

    def get_fixture_path(self) -> Optional[Path]:
        """Get full path to the offline fixture file, if configured"""
        fixture = self.get("fixture_path")
        if not fixture:
            return None
        path = Path(fixture)
        return path if path.is_absolute() else self.config_dir / path

    def get_kind_priority(self) -> List[ActivityKind]:
        """Activity kinds in priority order (highest first)"""
        raw = self.get("kind_priority", "preferences") or []
        kinds = []
        for value in raw:
            try:
                kinds.append(ActivityKind(value))
            except ValueError:
                continue
        return kinds

    def get_default_sort(self) -> SortKey:
        """Sort order used when the caller does not pick one"""
        try:
            return SortKey(self.get("default_sort", "preferences"))
        except ValueError:
            return SortKey.DUE_TIME

    def get_default_status_filter(self) -> StatusFilter:
        """Status filter used when the caller does not pick one"""
        try:
            return StatusFilter(self.get("default_status_filter", "preferences"))
        except ValueError:
            return StatusFilter.ALL
