"""Configuration loader for deploy-planner."""
import os
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional
import yaml

from ..errors import DeployPlannerError

logger = logging.getLogger(__name__)

DEFAULT_API_SETTINGS: Dict[str, Any] = {
    "extensions_origin": "https://firebaseextensions.googleapis.com/v1beta",
    "firebase_origin": "https://firebase.googleapis.com/v1beta1",
    "resource_manager_origin": "https://cloudresourcemanager.googleapis.com/v1",
    "timeout_seconds": 30,
}

# Lazy loading: the config file is only required once an API is actually called
_CONFIG: Optional[Dict[str, Any]] = None
_CONFIG_LOADED = False


class ConfigError(DeployPlannerError):
    """Configuration error exception."""
    pass


def _config_dir() -> Path:
    return Path.home() / ".config" / "deploy-planner"


def _preferred_config_path() -> Optional[str]:
    """Read "config_path" from preferences.json; a missing or unreadable file means no preference."""
    preferences_file = _config_dir() / "preferences.json"
    if not preferences_file.exists():
        return None
    try:
        with open(preferences_file, 'r') as f:
            return json.load(f).get("config_path")
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read preferences file {preferences_file}: {e}")
        return None


def _get_config_path() -> str:
    """
    Get config file path using XDG Base Directory standard.

    Priority order:
    1. User preference "config_path" (stored in ~/.config/deploy-planner/preferences.json)
    2. Default location: ~/.config/deploy-planner/config.yml

    Raises:
        ConfigError: If the config file doesn't exist in any location
    """
    config_path_pref = _preferred_config_path()
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = _config_dir() / "config.yml"
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise ConfigError(
        "Configuration file not found. Create one at:\n"
        f"   {default_config}\n"
        "or store the path of an existing file in the 'config_path' preference."
    )


def load_config() -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Returns:
        Dict containing configuration with keys:
        - authentication: dict with type and service_account_path
        - gcp: dict with project_id and optional project_number
        - api: endpoint origins and request timeout (defaults filled in)

    Raises:
        ConfigError: If config file is missing, invalid, or service account file doesn't exist
    """
    # Resolved on every call, never cached at module level
    config_path = _get_config_path()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")

    if 'authentication' not in config:
        raise ConfigError(
            f"Missing 'authentication' section in config at {config_path}\n"
            f"Required format:\n"
            f"authentication:\n"
            f"  type: service_account\n"
            f"  service_account_path: /path/to/service-account.json"
        )

    auth = config['authentication']

    if 'type' not in auth:
        raise ConfigError("Missing 'authentication.type' in config")

    if auth['type'] != 'service_account':
        raise ConfigError(
            f"Unsupported authentication type: {auth['type']}\n"
            f"Only 'service_account' is supported."
        )

    if 'service_account_path' not in auth:
        raise ConfigError(
            "Missing 'authentication.service_account_path' in config\n"
            "Please specify the absolute path to your service account JSON file."
        )

    service_account_path = auth['service_account_path']
    if not os.path.isfile(service_account_path):
        raise ConfigError(
            f"Service account file not found at: {service_account_path}\n"
            f"Please ensure the file exists or update the path in {config_path}"
        )

    if 'gcp' not in config:
        raise ConfigError(
            f"Missing 'gcp' section in config at {config_path}\n"
            f"Required format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id"
        )

    if 'project_id' not in config['gcp']:
        raise ConfigError("Missing 'gcp.project_id' in config")

    api = dict(DEFAULT_API_SETTINGS)
    api.update(config.get('api') or {})
    config['api'] = api

    logger.info(f"Configuration loaded successfully from {config_path}")
    logger.debug(f"Using service account: {service_account_path}")
    logger.debug(f"Using project ID: {config['gcp']['project_id']}")

    return config


def get_config() -> Dict[str, Any]:
    """
    Lazy load configuration on first use.

    Also exports GOOGLE_APPLICATION_CREDENTIALS so that google-auth and the
    Secret Manager client pick up the configured service account.

    Raises:
        ConfigError: If config file is missing or invalid
    """
    global _CONFIG, _CONFIG_LOADED

    if not _CONFIG_LOADED:
        _CONFIG = load_config()
        _CONFIG_LOADED = True

        service_account_path = _CONFIG['authentication']['service_account_path']
        os.environ['GOOGLE_APPLICATION_CREDENTIALS'] = service_account_path
        logger.info(f"Set GOOGLE_APPLICATION_CREDENTIALS from config: {service_account_path}")

    return _CONFIG


def reset_config() -> None:
    """Forget the lazily loaded configuration."""
    global _CONFIG, _CONFIG_LOADED
    _CONFIG = None
    _CONFIG_LOADED = False
