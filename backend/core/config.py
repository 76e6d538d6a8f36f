from pydantic_settings import BaseSettings
from .env_config import (
    get_database_config,
    get_platform_config,
    get_llm_config,
)
import os
from pathlib import Path
from dotenv import load_dotenv

# Ensure backend/.env is loaded into process env before any os.getenv calls
_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
if _ENV_PATH.exists():
    load_dotenv(_ENV_PATH, override=True)
else:
    load_dotenv(override=True)


class DatabasePoolConfigs:
    POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
    MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
    POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "60"))
    POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))
    POOL_PRE_PING = os.getenv("DB_POOL_PRE_PING", "true").lower() == "true"
    ECHO = os.getenv("DB_ECHO", "false").lower() == "true"


class AgentLogConfigs:
    LOG_AGENT_SYSTEM_PROMPT = os.getenv("LOG_AGENT_SYSTEM_PROMPT", "false").lower() == "true"
    LOG_AGENT_SYSTEM_PROMPT_MAX_LENGTH = int(os.getenv("LOG_AGENT_SYSTEM_PROMPT_MAX_LENGTH", "2000"))
    LOG_AGENT_RAW_OUTPUT = os.getenv("LOG_AGENT_RAW_OUTPUT", "true").lower() == "true"
    LOG_AGENT_RAW_OUTPUT_MAX_LENGTH = int(os.getenv("LOG_AGENT_RAW_OUTPUT_MAX_LENGTH", "2000"))


class Settings(BaseSettings):
    _db_config = get_database_config()
    _platform_config = get_platform_config()
    _llm_config = get_llm_config()

    DATABASE_URL: str = _db_config["DATABASE_URL"]
    DB_USER: str = _db_config["DB_USER"]
    DB_PASSWORD: str = _db_config["DB_PASSWORD"]
    DB_HOST: str = _db_config["DB_HOST"]
    DB_PORT: str = _db_config["DB_PORT"]
    DB_NAME: str = _db_config["DB_NAME"]
    DB_SSL_MODE: str = _db_config.get("DB_SSL_MODE", "disable")

    PLATFORM_BASE_URL: str = _platform_config["PLATFORM_BASE_URL"]
    PLATFORM_TIMEOUT_SECONDS: float = float(_platform_config["PLATFORM_TIMEOUT_SECONDS"])
    PLATFORM_INTERNAL_CLIENT: str = _platform_config["PLATFORM_INTERNAL_CLIENT"]

    AI_FUNCTION_MODEL: str = _llm_config["AI_FUNCTION_MODEL"]
    AI_FUNCTION_TEMPERATURE: float = float(_llm_config["AI_FUNCTION_TEMPERATURE"])
    AI_FUNCTION_MAX_TOKENS: int = int(_llm_config["AI_FUNCTION_MAX_TOKENS"])
    AZURE_OPENAI_ENDPOINT: str = _llm_config["AZURE_OPENAI_ENDPOINT"]
    AZURE_OPENAI_API_VERSION: str = _llm_config["AZURE_OPENAI_API_VERSION"]

    AI_FUNCTION_MAX_WORKERS: int = int(os.getenv("AI_FUNCTION_MAX_WORKERS", "8"))
    AI_FUNCTION_TIMEOUT_SECONDS: float = float(os.getenv("AI_FUNCTION_TIMEOUT_SECONDS", "600"))

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


settings = Settings()


class DatabaseConfigs:
    _ssl_params = f"?sslmode={settings.DB_SSL_MODE}" if settings.DB_SSL_MODE else ""
    DATABASE_URL = settings.DATABASE_URL or (
        f"postgresql://{settings.DB_USER}:{settings.DB_PASSWORD}@{settings.DB_HOST}:{settings.DB_PORT}/"
        f"{settings.DB_NAME}{_ssl_params}"
    )


class PlatformConfigs:
    BASE_URL = settings.PLATFORM_BASE_URL.rstrip("/")
    TIMEOUT_SECONDS = settings.PLATFORM_TIMEOUT_SECONDS
    INTERNAL_CLIENT = settings.PLATFORM_INTERNAL_CLIENT


class AIFunctionConfigs:
    MODEL = settings.AI_FUNCTION_MODEL
    TEMPERATURE = settings.AI_FUNCTION_TEMPERATURE
    MAX_TOKENS = settings.AI_FUNCTION_MAX_TOKENS
    AZURE_ENDPOINT = settings.AZURE_OPENAI_ENDPOINT
    AZURE_API_VERSION = settings.AZURE_OPENAI_API_VERSION
    MAX_WORKERS = max(1, settings.AI_FUNCTION_MAX_WORKERS)
    TIMEOUT_SECONDS = settings.AI_FUNCTION_TIMEOUT_SECONDS


class HostingConfigs:
    HOST = settings.HOST
    PORT = settings.PORT
    URL = f"http://{HOST}:{PORT}"
