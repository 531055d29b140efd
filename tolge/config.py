"""
Configuration management for Tolge.
"""
import copy
import os
import json
import logging
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_CONFIG = {
    "http": {
        "timeout_seconds": 60,
        "max_attempts": 3,
        "retry_delay": 2.0,
        "max_concurrent": 5,
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
        "render_proxy_url": "https://chrome.browserless.io/content",
        "render_wait_ms": 3000
    },
    "extraction": {
        "min_content_length": 100,
        "max_content_length": 50000,
        "selector_min_text": 150,
        "selector_min_paragraphs": 3,
        "structured_min_length": 200,
        "fallback_min_length": 100,
        "min_paragraph_length": 20,
        "min_direct_text": 20
    },
    "trimmer": {
        "min_paragraphs": 3,
        "headline_min_length": 30,
        "headline_max_length": 200,
        "long_paragraph_length": 300,
        "run_length": 5,
        "min_removed": 4
    },
    "model": {
        "name": "gpt-4o",
        "temperature": 0.3
    },
    "translation": {
        "target_language": "Estonian",
        "system_prompt": None
    },
    "output": {
        "directory": "output",
        "format": "docx"
    }
}

class Config:
    """
    Configuration manager for Tolge.
    """
    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the Config.

        Args:
            config_path: Path to a YAML or JSON configuration file
        """
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> Dict:
        """
        Load configuration from file or use defaults.

        Returns:
            Configuration dictionary
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_path:
            path = Path(self.config_path)
            if path.exists():
                try:
                    if path.suffix.lower() in ['.yaml', '.yml']:
                        with open(path, 'r') as f:
                            user_config = yaml.safe_load(f) or {}
                    elif path.suffix.lower() == '.json':
                        with open(path, 'r') as f:
                            user_config = json.load(f)
                    else:
                        raise ValueError(f"Unsupported config file format: {path.suffix}")

                    self._update_dict(config, user_config)
                except (OSError, ValueError, yaml.YAMLError) as e:
                    logger.error(f"Error loading config from {self.config_path}: {e}")
                    logger.warning("Using default configuration")
            else:
                logger.warning(f"Config file {self.config_path} not found. Using defaults.")

        self._override_from_env(config)

        return config

    def _update_dict(self, target: Dict, source: Dict) -> None:
        """
        Recursively update a dictionary.

        Args:
            target: Target dictionary to update
            source: Source dictionary with new values
        """
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._update_dict(target[key], value)
            else:
                target[key] = value

    def _override_from_env(self, config: Dict, prefix: str = 'TOLGE_') -> None:
        """
        Override configuration with environment variables.

        Sections are separated by a double underscore, so
        TOLGE_HTTP__MAX_ATTEMPTS=5 sets http.max_attempts.

        Args:
            config: Configuration dictionary to update
            prefix: Prefix for environment variables
        """
        for key, value in os.environ.items():
            if not key.startswith(prefix) or key == 'TOLGE_CONFIG_PATH':
                continue

            parts = key[len(prefix):].lower().split('__')

            current = config
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]

            try:
                current[parts[-1]] = json.loads(value)
            except json.JSONDecodeError:
                current[parts[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Dot-separated key path (e.g., 'http.max_attempts')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        current = self.config

        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]

        return current

    def section(self, name: str) -> Dict:
        """Return a copy of a whole configuration section."""
        return dict(self.config.get(name) or {})


# Global configuration instance
config = Config(os.getenv('TOLGE_CONFIG_PATH'))

def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value.

    Args:
        key: Dot-separated key path (e.g., 'extraction.max_content_length')
        default: Default value if key not found

    Returns:
        Configuration value
    """
    return config.get(key, default)


def get_openai_api_key() -> Optional[str]:
    return os.getenv('OPENAI_API_KEY')


def get_browserless_api_key() -> Optional[str]:
    return os.getenv('BROWSERLESS_API_KEY')
