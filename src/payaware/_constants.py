"""Internal constants shared across the library."""

BASE_URL = "https://api.pay-aware.ru"
USER_AGENT = "payaware-python"

# ------------------------------------------------------------------
# Credential store keys
# ------------------------------------------------------------------

KEY_AUTH_TOKEN = "authToken"
KEY_USER_ID = "userId"
KEY_PIN_CODE = "pinCode"
KEY_DEVICE_TOKEN = "deviceToken"

CREDENTIAL_KEYS: tuple[str, ...] = (KEY_AUTH_TOKEN, KEY_USER_ID, KEY_PIN_CODE, KEY_DEVICE_TOKEN)

# ------------------------------------------------------------------
# Session timing (seconds)
# ------------------------------------------------------------------

REQUEST_TIMEOUT: float = 5.0
RECHECK_INTERVAL: float = 15 * 60
COALESCE_WINDOW: float = 30.0

RESET_PASSWORD_PATH = "reset-password"
RESET_TOKEN_PARAM = "token"

# ------------------------------------------------------------------
# Subscription reminder settings
# ------------------------------------------------------------------

#: Reminder offsets in minutes before the payment is due (1 day, 1 hour, 15 min).
NOTIFICATION_OFFSETS: tuple[int, ...] = (1440, 60, 15)

PIN_LENGTH = 4
TAG_MAX_LENGTH = 20
