import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./household_recipes.db", alias="DATABASE_URL")
    redis_host: str = Field("localhost", alias="REDIS_HOST")
    redis_port: int = Field(6379, alias="REDIS_PORT")
    # Base URL of this service, used by the http trigger backend to call its own run endpoints
    app_base_url: str = Field("http://localhost:8000", alias="APP_BASE_URL")
    job_trigger_backend: str = Field("rq", alias="JOB_TRIGGER_BACKEND")
    llm_base_url: str = Field("https://api.openai.com", alias="LLM_BASE_URL")
    llm_api_key: str | None = Field(None, alias="LLM_API_KEY")
    llm_caption_model: str = Field("gpt-4o-mini", alias="LLM_CAPTION_MODEL")
    llm_smart_list_model: str = Field("gpt-4o-mini", alias="LLM_SMART_LIST_MODEL")
    llm_timeout_seconds: float = Field(60.0, alias="LLM_TIMEOUT_SECONDS")
    scraper_user_agent: str = Field(
        "Mozilla/5.0 (compatible; HouseholdRecipesBot/1.0; +https://household-recipes.app)",
        alias="SCRAPER_USER_AGENT",
    )
    scraper_timeout_seconds: float = Field(15.0, alias="SCRAPER_TIMEOUT_SECONDS")
    scraper_max_bytes: int = Field(4 * 1024 * 1024, alias="SCRAPER_MAX_BYTES")
    scraper_max_redirects: int = Field(5, alias="SCRAPER_MAX_REDIRECTS")
    scraper_max_url_length: int = Field(2000, alias="SCRAPER_MAX_URL_LENGTH")
    smart_list_running_timeout_minutes: int = Field(10, alias="SMART_LIST_RUNNING_TIMEOUT_MINUTES")
    smart_list_jobs_page_size: int = Field(20, alias="SMART_LIST_JOBS_PAGE_SIZE")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    return settings
