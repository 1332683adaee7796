import os

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)
REDIS_DB = int(os.getenv("REDIS_DB", 0))

# Max events waiting to be written to one live connection before it is dropped
SESSION_QUEUE_SIZE = int(os.getenv("SESSION_QUEUE_SIZE", 256))

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Close codes for rejecting a subscription on servers without the denial-response extension
WS_CLOSE_INVALID_ROOM = 4400
WS_CLOSE_ROOM_NOT_FOUND = 4404
WS_CLOSE_INTERNAL_ERROR = 1011

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")
