from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "profile_ingest"
    db_username: str = "profile_ingest"
    db_password: str = "secret"
    record_store: str = "postgres"

    max_file_size_bytes: int = 5 * 1024 * 1024
    immediate_processing_threshold_bytes: int = 1024 * 1024
    min_manual_text_length: int = 10
    max_files_per_batch: int = 5
    dedup_completed_uploads: bool = False
    storage_random_suffix: bool = False

    storage_url: str = "http://localhost:54321"
    storage_api_key: str = ""
    storage_bucket: str = "user-files"
    storage_timeout_seconds: float = 30.0

    pdf_engine: str = "pdfplumber"

    analysis_provider: str = "openai"
    analysis_api_key: str = ""
    analysis_model_name: str = "gpt-4o-mini"
    analysis_base_url: str = ""
    analysis_timeout_seconds: int = 30
    analysis_temperature: float = 0.1

    background_max_workers: int = 5
    background_queue_size: int = 100

    progress_tick_interval_seconds: float = 0.5
    progress_tick_step: int = 5
    progress_tick_ceiling: int = 90

    enrichment_providers: list[str] = ["linkedin_oauth", "people_data_labs"]
    linkedin_api_base_url: str = "https://api.linkedin.com/v2"
    linkedin_timeout_seconds: float = 15.0
    pdl_api_url: str = "https://api.peopledatalabs.com/v5/person/enrich"
    pdl_api_key: str = ""
    pdl_timeout_seconds: float = 15.0
    pdl_max_retries: int = 2
    pdl_retry_backoff_seconds: float = 1.0
    pdl_min_likelihood: float = 0.7
