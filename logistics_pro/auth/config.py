from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="JWT_", extra="ignore")

    secret: str = "logistics-pro-change-this-secret"  # 🔐 override with JWT_SECRET in production
    lifetime_seconds: int = 7 * 24 * 3600
    algorithm: str = "HS256"
    audience: str = "logistics-pro:auth"


auth_config = AuthConfig()
