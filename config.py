# config.py
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Runtime configuration, read from the environment once at startup."""

    def __init__(self, env=None):
        env = os.environ if env is None else env

        # APP_ENV wins; NODE_ENV is accepted so existing .env files keep working.
        # Unset means production: development conveniences must be opted into.
        self.APP_ENV = (env.get("APP_ENV") or env.get("NODE_ENV") or "production").lower()

        # Database
        self.MONGODB_URI = env.get("MONGODB_URI", "mongodb://localhost:27017")
        self.MONGODB_DB = env.get("MONGODB_DB", "coursemaster")

        # Auth
        self.JWT_SECRET = env.get("JWT_SECRET") or env.get("JWT_SECRET_KEY", "")
        self.JWT_ALGORITHM = "HS256"
        self.JWT_EXPIRES_IN = int(env.get("JWT_EXPIRES_IN", 7 * 24 * 60 * 60))
        self.ADMIN_SECRET_KEY = env.get("ADMIN_SECRET_KEY", "")

        # Mail
        self.SMTP_HOST = env.get("SMTP_HOST", "smtp.gmail.com")
        self.SMTP_PORT = int(env.get("SMTP_PORT", 587))
        self.SMTP_USER = env.get("SMTP_USER")
        self.SMTP_PASSWORD = env.get("SMTP_PASSWORD")
        self.SMTP_FROM = env.get("SMTP_FROM") or self.SMTP_USER or "noreply@coursemaster.com"

        self.APP_URL = env.get("APP_URL", "http://localhost:3000")
        self.CORS_ORIGINS = [
            origin.strip()
            for origin in env.get("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]
        self.SEED_DATA_PATH = env.get(
            "SEED_DATA_PATH",
            os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "seed-data.json"),
        )
        self.LOG_LEVEL = env.get("LOG_LEVEL", "INFO").upper()

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def email_configured(self) -> bool:
        return bool(self.SMTP_USER and self.SMTP_PASSWORD)


settings = Settings()


def get_settings() -> Settings:
    return settings
