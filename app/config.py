from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "food_recalls"
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    FDA_API_URL: str = "https://api.fda.gov/food/enforcement.json"
    FDA_API_KEY: str | None = None
    FSIS_API_URL: str = "https://www.fsis.usda.gov/fsis/api/recall/v/1"

    FDA_ENABLED: bool = True
    FSIS_ENABLED: bool = True

    FDA_TIMEOUT_SECONDS: float = 10.0
    FSIS_TIMEOUT_SECONDS: float = 8.0
    HTTP_USER_AGENT: str = "FoodSafetyApp/1.0"

    # How long a list request waits on the providers before using the store
    LIVE_FETCH_TIMEOUT_SECONDS: float = 5.0
    LIVE_FETCH_LIMIT: int = 100
    LIVE_FETCH_MONTHS_BACK: int = 6
    SEARCH_MONTHS_BACK: int = 12

    SYNC_LIMIT: int = 100
    SYNC_MONTHS_BACK: int = 6

    PAGE_SIZE: int = 12

    SCHEDULER_ENABLED: bool = False
    SYNC_INTERVAL_MINUTES: int = 30

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
