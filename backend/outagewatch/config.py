from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Database
    database_url: str = Field(default="sqlite:///./outagewatch.db")

    # Connection bootstrap (seconds). max_attempts=0 retries forever.
    db_connect_retry_seconds: float = Field(default=3.0)
    db_connect_max_backoff_seconds: float = Field(default=60.0)
    db_connect_max_attempts: int = Field(default=0)

    # Shared secret for the admin delete endpoint. Empty disables deletes.
    admin_password: str = Field(default="")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    log_level: str = Field(default="INFO")

    # CORS
    frontend_url: str = Field(default="*")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.frontend_url.split(",") if o.strip()]


settings = Settings()
