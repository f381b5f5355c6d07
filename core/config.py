from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATA_DIR: Path = Path("data")
    STORE_BACKEND: str = "json"  # "json" | "memory"

    DEFAULT_COPPER_PRICE_PER_KG: float = 75.0
    DEFAULT_VALIDITY_DAYS: int = 15
    DEFAULT_PAYMENT_CONDITIONS: str = "À vista ou em até 3x no cartão"
    DEFAULT_FOOTER_TEXT: str = (
        "Garantia de 90 dias para serviços executados. Orçamento válido por 15 dias."
    )
    CURRENCY_SYMBOL: str = "R$"

    SEED_DEFAULT_CATALOG: bool = True
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
