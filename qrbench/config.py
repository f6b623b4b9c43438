"""Manages application configuration via an INI file."""

import configparser
import logging
from pathlib import Path
from typing import List, Optional

from qrbench.logging_setup import get_app_data_dir

log = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "scan": {
        "workers": "0",  # 0 = derive from CPU count
        "follow_links": "true",
        "extensions": "png,jpg,jpeg,bmp,gif,webp,tif,tiff,pbm,pgm,ppm",
    },
    "prepare": {
        "max_dimension": "2000",  # Longer side is downscaled to this before detection
        "adaptive_min_side": "100",
        "adaptive_max_pixels": "10000000",
    },
    "detect": {
        "engines": "opencv,aruco",  # Compared per file; empty disables the comparison
    },
    "report": {
        "path_width": "50",
        "error_width": "60",
    },
}


class AppConfig:
    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else get_app_data_dir() / "qrbench.ini"
        self.config = configparser.ConfigParser()
        self.load()

    def load(self):
        """Loads the config, creating it with defaults if it doesn't exist."""
        if not self.config_path.exists():
            log.info("Creating default config at %s", self.config_path)
            self.config.read_dict(DEFAULT_CONFIG)
            self.save()
        else:
            log.info("Loading config from %s", self.config_path)
            self.config.read(self.config_path)
            # Ensure all sections and keys exist
            missing = False
            for section, keys in DEFAULT_CONFIG.items():
                if not self.config.has_section(section):
                    self.config.add_section(section)
                for key, value in keys.items():
                    if not self.config.has_option(section, key):
                        self.config.set(section, key, value)
                        missing = True
            if missing:
                self.save()  # Save to add any missing keys

    def save(self):
        """Saves the current configuration to the INI file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with self.config_path.open("w") as f:
                self.config.write(f)
            log.info("Saved config to %s", self.config_path)
        except OSError as e:
            log.error("Failed to save config to %s: %s", self.config_path, e)

    def getint(self, section, key, fallback=None):
        return self.config.getint(section, key, fallback=fallback)

    def getboolean(self, section, key, fallback=None):
        return self.config.getboolean(section, key, fallback=fallback)

    def getlist(self, section, key, fallback=None) -> List[str]:
        """Reads a comma-separated value, dropping blanks."""
        raw = self.config.get(section, key, fallback=None)
        if raw is None:
            return list(fallback or [])
        return [item.strip() for item in raw.split(",") if item.strip()]

    def set(self, section, key, value):
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, str(value))


# Global config instance
config = AppConfig()
