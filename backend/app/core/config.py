import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    COSMOS_DB_ENDPOINT: str = ""
    COSMOS_DB_KEY: str = ""
    COSMOS_DB_DATABASE: str = "echelon-hris"
    COSMOS_DB_EMPLOYEES_CONTAINER: str = "employees"
    COSMOS_DB_TEAMS_CONTAINER: str = "teams"
    COSMOS_DB_TEAM_MEMBERS_CONTAINER: str = "team_members"
    COSMOS_DB_AUDIT_LOGS_CONTAINER: str = "audit_logs"
    COSMOS_DB_CHAT_SESSIONS_CONTAINER: str = "chat_sessions"
    COSMOS_DB_CHAT_MESSAGES_CONTAINER: str = "chat_messages"

    OPENAI_ENDPOINT: str = ""
    OPENAI_API_KEY: str = ""
    OPENAI_API_VERSION: str = "2024-10-21"
    OPENAI_CHAT_MODEL: str = "gpt-4o"

    DEMO_USER_ID: str = "demo-admin"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
