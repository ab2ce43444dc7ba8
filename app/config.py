"""
Application Configuration
Load settings from environment variables with validation
"""
import os


class Settings:
    """Application configuration from environment variables"""

    # MongoDB Configuration
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "proposal_studio")
    MONGODB_TLS: bool = os.getenv("MONGODB_TLS", "False").lower() == "true"

    # Session tokens
    JWT_SECRET: str = os.getenv("JWT_SECRET", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES: int = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 7)))  # 7 days

    # Text generation provider (Cohere through its OpenAI-compatible endpoint)
    COHERE_API_KEY: str = os.getenv("COHERE_API_KEY", "")  # optional server-wide fallback
    LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "https://api.cohere.ai/compatibility/v1")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "c4ai-aya-expanse-32b")
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.75"))
    LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

    # Plans & quota
    FREE_MONTHLY_CAP: int = int(os.getenv("FREE_MONTHLY_CAP", "3"))
    PRO_PRICE_USD: int = int(os.getenv("PRO_PRICE_USD", "49"))

    # Rate limiting (fixed window)
    GENERATE_RATE_LIMIT: int = int(os.getenv("GENERATE_RATE_LIMIT", "20"))
    GENERATE_RATE_WINDOW_SECONDS: int = int(os.getenv("GENERATE_RATE_WINDOW_SECONDS", "3600"))
    AUTH_RATE_LIMIT: int = int(os.getenv("AUTH_RATE_LIMIT", "10"))
    AUTH_RATE_WINDOW_SECONDS: int = int(os.getenv("AUTH_RATE_WINDOW_SECONDS", "900"))

    # Geo lookup for signup/login country tagging
    GEOIP_ENABLED: bool = os.getenv("GEOIP_ENABLED", "True").lower() == "true"
    GEOIP_TIMEOUT_SECONDS: float = float(os.getenv("GEOIP_TIMEOUT_SECONDS", "3"))

    # Application Configuration
    APP_NAME: str = "Proposal Studio"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_PREFIX: str = os.getenv("API_PREFIX", "/api")
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:8080")
    # Proxies whose X-Forwarded-For uvicorn applies to the peer address
    FORWARDED_ALLOW_IPS: str = os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1")

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


# Initialize settings
settings = Settings()


def validate_settings() -> bool:
    """
    Validate that all required settings are configured

    Returns:
        True if all required settings are present

    Raises:
        ValueError: If required settings are missing
    """
    required_keys = {
        "MONGODB_URI": settings.MONGODB_URI,
        "JWT_SECRET": settings.JWT_SECRET,
    }

    missing_keys = [key for key, value in required_keys.items() if not value]
    if missing_keys:
        raise ValueError(f"Missing required environment variables: {', '.join(missing_keys)}")

    return True
