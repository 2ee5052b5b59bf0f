"""Network configuration constants for the quiz server."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
API_PREFIX: str = "/api"
DEFAULT_CLIENT_TIMEOUT_SECONDS: float = 5.0
