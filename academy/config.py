from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    app_name: str = 'Music Academy Admin'
    app_env: str = 'local'
    app_timezone: str = 'Asia/Riyadh'
    database_url: str = 'sqlite:///./academy.db'
    db_slow_query_ms: int = 100
    metrics_slow_ms: int = 200
    default_monthly_price: float = 500.0
    default_quarterly_price: float = 1400.0
    default_yearly_price: float = 5000.0
    session_min_duration_hours: float = 1.0
    session_max_duration_hours: float = 4.0
    enroll_min_duration_hours: float = 0.5
    week_start_day: str = 'Saturday'
    invoice_prefix: str = 'INV'


settings = Settings()
