import os

# purpose: process-wide constants resolved once from the environment
# status: active

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./test.db")
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

VOTING_PERIOD_SECONDS = int(os.getenv("VOTING_PERIOD_SECONDS", str(7 * 24 * 60 * 60)))
INSPECTOR_FEE = int(os.getenv("INSPECTOR_FEE", "5"))
PRODUCER_FEE_PERCENTAGE = int(os.getenv("PRODUCER_FEE_PERCENTAGE", "20"))
SETTLEMENT_INITIAL_SUPPLY = int(os.getenv("SETTLEMENT_INITIAL_SUPPLY", "1000000"))
SETTLEMENT_TOKEN_SYMBOL = os.getenv("SETTLEMENT_TOKEN_SYMBOL", "HRV")

OPERATION_CENTER_ADDRESS = os.getenv(
    "OPERATION_CENTER_ADDRESS", "0x00000000000000000000000000000000000da0c1"
).lower()
INSPECTION_DESK_ADDRESS = os.getenv(
    "INSPECTION_DESK_ADDRESS", "0x00000000000000000000000000000000001b5ec7"
).lower()

OPERATOR_PASSWORD = os.getenv("OPERATOR_PASSWORD")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
SENTRY_DSN = os.getenv("SENTRY_DSN")


def testing() -> bool:
    return os.getenv("TESTING") == "1"
