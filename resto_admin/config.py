import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

load_dotenv()


def _int_list(raw: str) -> list[int]:
    return [int(item) for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Restaurant REST API
    api_base_url: str = Field(
        default=os.getenv("RESTO_API_BASE_URL", "http://localhost:8080")
    )
    api_token: str | None = Field(default=os.getenv("RESTO_API_TOKEN"))
    api_timeout: float = Field(default=float(os.getenv("RESTO_API_TIMEOUT", "30")))

    # Column state persistence
    database_url: str = Field(
        default=os.getenv("DATABASE_URL", "sqlite+pysqlite:///./resto_admin.db")
    )

    # Table defaults
    default_page_size: int = Field(default=int(os.getenv("TABLE_DEFAULT_PAGE_SIZE", "20")))
    page_size_options: list[int] = Field(
        default=_int_list(os.getenv("TABLE_PAGE_SIZE_OPTIONS", "10,20,25,50,100"))
    )
    max_page_size: int = Field(default=int(os.getenv("TABLE_MAX_PAGE_SIZE", "200")))
    search_debounce_ms: int = Field(default=int(os.getenv("TABLE_SEARCH_DEBOUNCE_MS", "300")))

    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

    @field_validator("default_page_size", "max_page_size", mode="after")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page sizes must be >= 1")
        return v

    @field_validator("page_size_options", mode="after")
    @classmethod
    def validate_page_size_options(cls, v: list[int]) -> list[int]:
        if not v or any(item < 1 for item in v):
            raise ValueError("TABLE_PAGE_SIZE_OPTIONS must list positive integers")
        return sorted(set(v))


settings = Settings()
