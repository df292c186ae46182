"""Shared constants for client ↔ Realtime Database communication."""

JSON_SUFFIX = ".json"
DEFAULT_VERB = "PATCH"
MAX_REDIRECTS = 20

# Request headers
ACCEPT_EVENT_STREAM = "text/event-stream"
# Writes carry a JSON body under this content type; servers accept it as-is.
CONTENT_TYPE_WRITE = "application/x-www-form-urlencoded"

# Streaming event headers (matched byte-for-byte, newline included)
EVENT_KEEP_ALIVE = b"event: keep-alive\n"
EVENT_PUT = b"event: put\n"

# Environment
ENV_HOST = "FIREBASE_HOST"
ENV_FUNCTION_HOST = "FIREBASE_FUNCTION_HOST"
ENV_DB_PATH = "FIREBASE_DB_PATH"
ENV_AUTH_TOKEN = "FIREBASE_AUTH_TOKEN"

# Emulator
DEFAULT_EMULATOR_HOST = "127.0.0.1"
DEFAULT_EMULATOR_PORT = 9000
DEFAULT_KEEPALIVE = 30.0
EP_FUNCTIONS = "/functions"
