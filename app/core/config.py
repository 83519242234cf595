from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./recruit.db"

    # If DEV and you hit SSL cert issues on Windows, set DB_SSL_VERIFY=false in .env
    DB_SSL_VERIFY: bool = True

    SECRET_KEY: str = "dev-secret-change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None
    ADMIN_NAME: str | None = "System Admin"
    ENV: str = "dev"  # "dev" or "prod"

    # Server-side floor for temporary passwords issued on approval
    MIN_PASSWORD_LENGTH: int = 6
    BCRYPT_ROUNDS: int = 12

    # --- EMAIL SETTINGS ---
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    EMAILS_FROM_EMAIL: str = "admin@zgenai.org"
    EMAILS_FROM_NAME: str = "ZgenAI Admissions"
    FRONTEND_URL: str = "http://localhost:3000"  # CORS origin + login link

    # --- FILE STORAGE ---
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024
    ALLOWED_RESUME_EXTENSIONS: set[str] = {"pdf", "doc", "docx", "txt", "rtf"}
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    SUPABASE_BUCKET: str = "resumes"

    # --- RATE LIMITING ---
    REDIS_URL: str | None = None
    RATE_LIMIT_ENABLED: bool = True
    INTAKE_RATE_LIMIT: str = "20/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
