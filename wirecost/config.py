from pydantic_settings import BaseSettings

from .calculators.wire_costing import PrecisionMode


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./costing.db"
    APP_NAME: str = "Wire Costing Sheet"

    # Material rate defaults — seeded into material_rates on first run
    COPPER_RATE_DEFAULT: float = 700.0   # per kg
    PVC_RATE_DEFAULT: float = 100.0      # per kg
    LABOUR_ON_WIRE_DEFAULT: float = 12.0  # percent of RMC

    # Costing sheet
    COSTING_SHEET_NAME: str = "Costing"
    COSTING_ID_PREFIX: str = "CO-"
    COSTING_ID_WIDTH: int = 4
    COSTING_ID_MAX_RETRIES: int = 3
    COSTING_PRECISION_MODE: PrecisionMode = PrecisionMode.EXACT  # exact | legacy
    COSTING_APPLY_ALLOWANCES: bool = False

    class Config:
        env_file = ".env"


settings = Settings()
