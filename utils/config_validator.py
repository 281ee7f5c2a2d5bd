"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional

from enums.runtime_environment import RuntimeEnvironment


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_gateway_secret(key_secret: Optional[str]) -> None:
    """
    Validate the payment gateway key secret.

    The secret signs payment confirmations and order drafts, an empty one
    would make every signature trivially forgeable.

    Raises:
        ConfigValidationError: If secret is missing or empty
    """
    if not key_secret or len(key_secret.strip()) == 0:
        raise ConfigValidationError(
            "PAYMENT_GATEWAY_KEY_SECRET is required and must not be empty!\n"
            "Get your key secret from your payment gateway dashboard.\n"
            "Add to .env: PAYMENT_GATEWAY_KEY_SECRET=<your-key-secret>"
        )


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Gateway credentials are only mandatory in production, development and
    test runs work with cash on delivery alone.
    """
    if config_module.RUNTIME_ENVIRONMENT != RuntimeEnvironment.PROD:
        return

    validate_required_config(config_module.PAYMENT_GATEWAY_KEY_ID, 'PAYMENT_GATEWAY_KEY_ID', '<your-key-id>')
    validate_gateway_secret(config_module.PAYMENT_GATEWAY_KEY_SECRET)


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nServer startup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
