import logging
from pydantic_settings import BaseSettings
from pydantic import ConfigDict

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
    ]
)

class Settings(BaseSettings):
    # Database Configuration
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "planning_database"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_CREATE_TABLES: bool = False

    # Planning tables (names carry spaces, as created by the spreadsheet import)
    PROJECTS_TABLE: str = "Planning Database - ProjectsList"
    BOQ_ACTIVITIES_TABLE: str = "Planning Database - BOQ Rates"
    KPI_TABLE: str = "Planning Database - KPI"

    # Paging and batching
    FETCH_CHUNK_SIZE: int = 1000
    BOQ_PAGE_SIZE: int = 10
    LEDGER_PAGE_SIZE: int = 50
    IMPORT_BATCH_SIZE: int = 50
    DELETE_BATCH_SIZE: int = 100

    # Outbound HTTP
    REQUEST_TIMEOUT: int = 120

    # Prayer times
    PRAYER_TIMES_API_URL: str = "https://api.aladhan.com/v1/calendar"
    PRAYER_LATITUDE: float = 30.0444
    PRAYER_LONGITUDE: float = 31.2357
    PRAYER_METHOD: int = 5
    PRAYER_REQUEST_TIMEOUT: int = 10

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
