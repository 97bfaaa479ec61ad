"""Validation of secret names and environment variable keys."""
import re

from ...core.errors import InvalidSecretKeyError

# GCP secret name format: alphanumeric, underscores, hyphens only
SECRET_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
KEY_PATTERN = re.compile(r'^[A-Z_][A-Z0-9_]*$')

RESERVED_KEYS = frozenset([
    "FIREBASE_CONFIG",
    "CLOUD_RUNTIME_CONFIG",
    "EVENTARC_CLOUD_EVENT_SOURCE",
    "ENTRY_POINT",
    "GCP_PROJECT",
    "GCLOUD_PROJECT",
    "GOOGLE_CLOUD_PROJECT",
    "FUNCTION_TRIGGER_TYPE",
    "FUNCTION_NAME",
    "FUNCTION_MEMORY_MB",
    "FUNCTION_TIMEOUT_SEC",
    "FUNCTION_IDENTITY",
    "FUNCTION_REGION",
    "FUNCTION_TARGET",
    "FUNCTION_SIGNATURE_TYPE",
    "K_SERVICE",
    "K_REVISION",
    "PORT",
    "K_CONFIGURATION",
])
RESERVED_PREFIXES = ("X_GOOGLE_", "FIREBASE_", "EXT_")


def to_upper_snake_case(key: str) -> str:
    """Convert camelCase, dotted and dashed keys to UPPER_SNAKE_CASE."""
    key = re.sub(r'([a-z])([A-Z])', r'\1_\2', key)
    return re.sub(r'[.-]', '_', key).upper()


def validate_secret_name(name: str) -> None:
    """
    Validate secret name matches GCP requirements ([a-zA-Z0-9_-]).

    Raises:
        InvalidSecretKeyError: If the name is empty or contains other characters
    """
    if not name:
        raise InvalidSecretKeyError("Secret name cannot be empty")
    if not SECRET_NAME_PATTERN.match(name):
        raise InvalidSecretKeyError(
            f"Invalid secret name '{name}'. "
            "Allowed characters: letters, numbers, underscores (_), hyphens (-)"
        )


def validate_key(key: str) -> None:
    """
    Validate an environment variable key a secret is exposed under.

    Raises:
        InvalidSecretKeyError: If the key is malformed, reserved, or uses a reserved prefix
    """
    if not KEY_PATTERN.match(key):
        raise InvalidSecretKeyError(
            f"Key {key} must start with an uppercase ASCII letter or underscore, "
            "and then consist of uppercase ASCII letters, digits, and underscores."
        )
    if key in RESERVED_KEYS:
        raise InvalidSecretKeyError(f"Key {key} is reserved for internal use.")
    for prefix in RESERVED_PREFIXES:
        if key.startswith(prefix):
            raise InvalidSecretKeyError(f"Key {key} starts with a reserved prefix ({prefix})")
