"""Settings configuration loader module.

This module handles loading and parsing of the settings.conf file which contains
the marketplace ledger settings: the store backend, the database URL, the token
verification parameters and the ledger policy switches.

The settings file uses INI format with a [DEFAULT] section containing key-value pairs.
Every key has a default, so a missing settings.conf runs the service against the
in-memory store.

Example settings.conf:
    [DEFAULT]
    store_backend = postgres
    db_url = postgresql://root@localhost:26257/ledger?sslmode=disable
    jwt_secret = change-me
    treasury_identities = treasury-1,treasury-2

Raises:
    SettingsError: If the settings file is invalid or contains invalid values
"""
from configparser import ConfigParser
from pathlib import Path
from typing import Dict, Any, List
import logging

logger = logging.getLogger(__name__)

class ConfigValidationError:
    """Helper class to format configuration validation errors"""
    def __init__(self):
        self.missing: List[str] = []
        self.invalid_values: List[str] = []
        self.missing_sections: List[str] = []

    def has_errors(self) -> bool:
        """Check if any errors exist"""
        return bool(self.missing or self.invalid_values or self.missing_sections)

    def format_message(self) -> str:
        """Format error message in a clean, readable way"""
        messages = []

        if self.missing_sections:
            messages.append("Missing required sections:")
            messages.extend(f"  - {item}" for item in self.missing_sections)

        if self.missing:
            if messages:
                messages.append("")
            messages.append("Missing required settings:")
            messages.extend(f"  - {item}" for item in self.missing)

        if self.invalid_values:
            if messages:
                messages.append("")
            messages.append("Invalid values:")
            messages.extend(f"  - {item}" for item in self.invalid_values)

        return "\n".join(messages)

class SettingsError(Exception):
    """Raised when there are issues loading or parsing the settings configuration."""
    pass

STORE_BACKENDS = ('memory', 'postgres')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

# Default settings
DEFAULTS = {
    'store_backend': 'memory',
    'db_url': 'postgresql://root@localhost:26257/ledger?sslmode=disable',
    'jwt_secret': 'insecure-development-secret',
    'jwt_algorithm': 'HS256',
    'api_host': '0.0.0.0',
    'api_port': '8000',
    'log_level': 'INFO',
    'treasury_identities': '',  # Comma separated identities allowed to credit accounts
    'derive_seller_from_listing': 'false',  # Credit the listing owner instead of the named seller
    'require_buyer_for_comments': 'false'  # Only the recorded buyer may comment on a sold item
}

def load_settings_conf(settings_path: str = ".") -> Dict[str, Any]:
    """Load and parse settings.conf file with strict validation

    Args:
        settings_path: Directory containing settings.conf

    Returns:
        Dictionary containing validated settings

    Raises:
        SettingsError: If parsing fails or validation fails
    """
    config_path = Path(settings_path) / 'settings.conf'

    settings = dict(DEFAULTS)
    if not config_path.exists():
        logger.debug(f"No settings file at {config_path}, using defaults")
        return validate_settings(settings)

    try:
        parser = ConfigParser()
        parser.read(config_path)
    except Exception as e:
        raise SettingsError(f"Error parsing settings.conf: {str(e)}")

    settings.update(dict(parser['DEFAULT']))

    errors = ConfigValidationError()
    if settings['store_backend'] == 'postgres' and not settings.get('db_url'):
        errors.missing.append('db_url')
    if not settings.get('jwt_secret'):
        errors.missing.append('jwt_secret')

    if errors.has_errors():
        raise SettingsError(
            "Settings Configuration Validation Failed\n\n" +
            errors.format_message()
        )

    return validate_settings(settings)

def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"{key} must be a boolean, got {value!r}")

def validate_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Validate loaded settings.

    Args:
        settings: Dictionary of settings to validate

    Returns:
        Validated and processed settings

    Raises:
        SettingsError: If validation fails
    """
    errors = ConfigValidationError()

    try:
        # Convert typed settings
        settings['api_port'] = int(settings['api_port'])
        settings['derive_seller_from_listing'] = _parse_bool(
            'derive_seller_from_listing', settings['derive_seller_from_listing']
        )
        settings['require_buyer_for_comments'] = _parse_bool(
            'require_buyer_for_comments', settings['require_buyer_for_comments']
        )

        identities = settings['treasury_identities']
        if isinstance(identities, str):
            identities = [i.strip() for i in identities.split(',') if i.strip()]
        settings['treasury_identities'] = list(identities)

        settings['log_level'] = str(settings['log_level']).upper()
    except (ValueError, KeyError) as e:
        raise SettingsError(f"Invalid settings configuration: {str(e)}")

    # Validate ranges and choices
    if settings['store_backend'] not in STORE_BACKENDS:
        errors.invalid_values.append(
            f"store_backend: {settings['store_backend']} (expected one of {', '.join(STORE_BACKENDS)})"
        )
    if not 0 < settings['api_port'] < 65536:
        errors.invalid_values.append(f"api_port: {settings['api_port']}")
    if settings['log_level'] not in LOG_LEVELS:
        errors.invalid_values.append(f"log_level: {settings['log_level']}")

    if errors.has_errors():
        raise SettingsError(
            "Settings Configuration Validation Failed\n\n" +
            errors.format_message()
        )

    return settings
