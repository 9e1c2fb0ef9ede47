from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Digiwing ERP Portal"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # HR backend
    BACKEND_URL: str = "http://localhost:3000"

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Redis (session store)
    REDIS_URL: str = "redis://localhost:6379/0"
    SESSION_TTL_SECONDS: int = 12 * 60 * 60
    REMEMBER_ME_TTL_SECONDS: int = 30 * 24 * 60 * 60

    # Leave documents
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_EXTENSIONS: str = "jpg,jpeg,png,pdf,doc,docx"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
