import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def get_env_variable(key: str, default: str | None = None) -> str:
    return os.getenv(key, default or "")


def get_database_config() -> dict:
    return {
        "DATABASE_URL": os.getenv("DATABASE_URL", ""),
        "DB_USER": os.getenv("DB_USER", "postgres"),
        "DB_PASSWORD": os.getenv("DB_PASSWORD", "postgres"),
        "DB_HOST": os.getenv("DB_HOST", "localhost"),
        "DB_PORT": os.getenv("DB_PORT", "5432"),
        "DB_NAME": os.getenv("DB_NAME", "scenegen"),
        "DB_SSL_MODE": os.getenv("DB_SSL_MODE", "disable"),
    }


def get_platform_config() -> dict:
    return {
        "PLATFORM_BASE_URL": os.getenv("PLATFORM_BASE_URL", "http://localhost:9529"),
        "PLATFORM_TIMEOUT_SECONDS": os.getenv("PLATFORM_TIMEOUT_SECONDS", "30"),
        "PLATFORM_INTERNAL_CLIENT": os.getenv("PLATFORM_INTERNAL_CLIENT", "bundle"),
    }


def get_llm_config() -> dict:
    return {
        "AI_FUNCTION_MODEL": os.getenv("AI_FUNCTION_MODEL", "gpt-35-turbo-16k"),
        "AI_FUNCTION_TEMPERATURE": os.getenv("AI_FUNCTION_TEMPERATURE", "0.5"),
        "AI_FUNCTION_MAX_TOKENS": os.getenv("AI_FUNCTION_MAX_TOKENS", "2048"),
        "AZURE_OPENAI_ENDPOINT": os.getenv("AZURE_OPENAI_ENDPOINT", ""),
        "AZURE_OPENAI_API_VERSION": os.getenv("AZURE_OPENAI_API_VERSION", "2023-07-01-preview"),
    }
