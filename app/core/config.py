from decimal import Decimal
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()

DEFAULT_CLASIFICACIONES = [
    "Reprotección",
    "Circuitos",
    "Gastos Fijos",
    "Materiales",
    "Servicios",
    "Honorarios",
    "Importaciones",
    "Otros",
]


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./cxp.db", alias="DATABASE_URL")
    environment: str = Field("development", alias="ENVIRONMENT")
    secret_key: str = Field(..., alias="SECRET_KEY")
    session_cookie_name: str = Field("cxp_session", alias="SESSION_COOKIE_NAME")
    login_rate_limit_count: int = Field(5, alias="LOGIN_RATE_LIMIT_COUNT")
    login_rate_limit_window: int = Field(600, alias="LOGIN_RATE_LIMIT_WINDOW")  # seconds
    log_file: str = Field("cxp.log", alias="LOG_FILE")
    iva_rate: Decimal = Field(Decimal("0.16"), alias="IVA_RATE")
    default_dias_credito: int = Field(30, alias="DEFAULT_DIAS_CREDITO")
    default_clasificaciones: List[str] = Field(default_factory=lambda: list(DEFAULT_CLASIFICACIONES))

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
