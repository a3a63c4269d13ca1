from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./academy.db"
    REDIS_URL: str = "redis://localhost:6379/3"
    SECRET_KEY: str = "dev-secret-academy"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_ENABLED: bool = True
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    CONTENT_DIR: str = "./content"
    KEY_STORE_PREFIX: str = "agentcore-academy-openrouter-key"

    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    TUTOR_MODEL: str = "z-ai/glm-4.7"
    TUTOR_MAX_TOKENS: int = 4096
    TUTOR_TEMPERATURE: float = 0.7
    APP_URL: str = "https://agentcore.academy"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
