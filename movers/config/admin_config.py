from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "dev"                # "dev" / "staging" / "prod"
    SERVICE_NAME: str = "movers-backend"
    METRICS_ENABLED: bool = False
    AUTO_CREATE_TABLES: bool = False   # create tables from metadata on startup (local runs)

    class Config:
        env_file = ".env"
        extra="ignore"

admin_config = Settings()
