import os
import sys

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test runs to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)


def _exit_with_config_error(name: str, reason: Exception, expected: str):
    print(f"\n ERROR: Invalid {name} configuration\n", file=sys.stderr)
    print(f"Reason: {reason}", file=sys.stderr)
    print(f"Expected: {expected}", file=sys.stderr)
    print(f"Current value: {os.environ.get(name, '(not set)')}\n", file=sys.stderr)
    sys.exit(1)


def _positive_int(name: str, default: str) -> int:
    try:
        value = int(os.environ.get(name, default))
        if value <= 0:
            raise ValueError(f"{name} must be positive (got: {value})")
        return value
    except ValueError as e:
        _exit_with_config_error(name, e, "Positive integer")


# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(os.environ.get("RUNTIME_ENVIRONMENT", RuntimeEnvironment.DEV.value))
except ValueError as e:
    _exit_with_config_error("RUNTIME_ENVIRONMENT", e, ", ".join(env.value for env in RuntimeEnvironment))

# Database
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/storefront.db")
SQL_ECHO = os.environ.get("SQL_ECHO", "false") == "true"

# HTTP server
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = _positive_int("WEBAPP_PORT", "8000")

# Payment gateway (Razorpay-compatible orders API)
PAYMENT_GATEWAY_API_URL = os.environ.get("PAYMENT_GATEWAY_API_URL", "https://api.razorpay.com/v1")
PAYMENT_GATEWAY_KEY_ID = os.environ.get("PAYMENT_GATEWAY_KEY_ID", "")
PAYMENT_GATEWAY_KEY_SECRET = os.environ.get("PAYMENT_GATEWAY_KEY_SECRET", "")
PAYMENT_GATEWAY_TIMEOUT_SECONDS = _positive_int("PAYMENT_GATEWAY_TIMEOUT_SECONDS", "15")
CURRENCY = os.environ.get("CURRENCY", "INR")

# Admin analytics
LOW_STOCK_THRESHOLD = _positive_int("LOW_STOCK_THRESHOLD", "10")
DEFAULT_PAGE_SIZE = _positive_int("DEFAULT_PAGE_SIZE", "20")

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs
LOG_DIR = os.environ.get("LOG_DIR", "logs")

# Log Retention: Environment-specific defaults
# Dev: keep 30 days for debugging, Prod: 5 days to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = _positive_int("LOG_RETENTION_DAYS", "30")
else:
    LOG_RETENTION_DAYS = _positive_int("LOG_RETENTION_DAYS", "5")
