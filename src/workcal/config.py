from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Saved configurations
    database_url: str = "sqlite:///./workcal.db"

    app_name: str = "Calendario Laboral"
    debug: bool = False
    log_level: str = "INFO"

    # Divisor for the hours balance "equivalent days"
    hours_per_day: float = 8.0

    # Accepted years: today.year - past ... today.year + future
    year_past_window: int = 2
    year_future_window: int = 5


settings = Settings()
