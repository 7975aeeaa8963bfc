"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Optional

from sampler.core.sampling import (
    DEFAULT_NUMBER_OF_SAMPLES,
    DEFAULT_SAMPLE_SIZE_BYTES,
    clamp_sample_count,
    clamp_sample_size,
)


SIZE_UNITS = {
    'bytes': 1,
    'kb': 1024,
    'mb': 1024 * 1024,
    'gb': 1024 * 1024 * 1024,
}


def resolve_sample_size(
    size_bytes: Optional[int] = None,
    size_kb: Optional[int] = None,
    size_mb: Optional[int] = None,
    size_gb: Optional[int] = None,
    default: int = DEFAULT_SAMPLE_SIZE_BYTES
) -> int:
    """
    Combine sample sizes given in different units.

    When several units are supplied the largest resulting byte value wins.
    When none is supplied the default is returned.
    """
    supplied = [
        value * SIZE_UNITS[unit]
        for unit, value in (('bytes', size_bytes), ('kb', size_kb), ('mb', size_mb), ('gb', size_gb))
        if value is not None
    ]
    if not supplied:
        return default
    return max(supplied)


@dataclass
class SamplerSettings:
    """
    Settings for a comparison run.

    Out of range sample settings are clamped, never rejected.
    """
    number_of_samples: int = DEFAULT_NUMBER_OF_SAMPLES
    sample_size_bytes: int = DEFAULT_SAMPLE_SIZE_BYTES

    # Logging
    log_to_file: bool = False
    log_file_path: str = ""
    log_directory: str = ""

    # Dataset lookup
    dataset_catalog: str = ""

    def __post_init__(self) -> None:
        self.number_of_samples = clamp_sample_count(self.number_of_samples)
        self.sample_size_bytes = clamp_sample_size(self.sample_size_bytes)


class SettingsManager:
    """Manager for loading/saving application settings."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self._settings: Optional[SamplerSettings] = None

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'FileCompareSampler' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'filecomparesampler' / 'settings.json'

    @property
    def settings(self) -> SamplerSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> SamplerSettings:
        """Load settings from disk."""
        if not self.settings_path.exists():
            return SamplerSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            return self._from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logging.warning(f"SettingsManager - Could not load settings from {self.settings_path}: {e}")
            return SamplerSettings()

    def save(self, settings: Optional[SamplerSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(self._to_dict(settings), f, indent=2)

            self._settings = settings
            logging.info(f"SettingsManager - Saved settings to {self.settings_path}")
            return True

        except OSError as e:
            logging.error(f"SettingsManager - Could not save settings to {self.settings_path}: {e}")
            return False

    def _to_dict(self, settings: SamplerSettings) -> dict[str, Any]:
        """Convert settings to dictionary for JSON serialization."""
        return asdict(settings)

    def _from_dict(self, data: dict) -> SamplerSettings:
        """Convert dictionary back to settings object."""
        defaults = SamplerSettings()
        return SamplerSettings(
            number_of_samples=int(data.get('number_of_samples', defaults.number_of_samples)),
            sample_size_bytes=int(data.get('sample_size_bytes', defaults.sample_size_bytes)),
            log_to_file=bool(data.get('log_to_file', defaults.log_to_file)),
            log_file_path=str(data.get('log_file_path', defaults.log_file_path)),
            log_directory=str(data.get('log_directory', defaults.log_directory)),
            dataset_catalog=str(data.get('dataset_catalog', defaults.dataset_catalog)),
        )
