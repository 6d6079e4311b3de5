from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Teamhub"
    app_version: str = "0.1.0"

    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_key: str = ""
    store_timeout_seconds: int = 10

    invitation_ttl_days: int = 7
    invitation_base_url: str = "http://localhost:3000/invitations"

    log_level: str = "INFO"
    log_dir: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
