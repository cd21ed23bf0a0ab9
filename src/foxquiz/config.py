import os


class Settings:
    PROJECT_NAME: str = "foxquiz"
    DEBUG: bool = os.environ.get("FOXQUIZ_DEBUG", "") == "1"
    LOG_DIR: str = "log"
    LOG_FILE: str = "foxquiz.log"
    DB_DIR: str = "db"
    DB_FILE: str = "foxquiz.db"
    QUIZ_SOURCE: str = os.environ.get("FOXQUIZ_SOURCE", "static")
    QUIZ_DIR: str = "quizzes"
    DEFAULT_TOPIC: str = "foxes"
    ADMIN_CLICK_THRESHOLD: int = 10
    USERNAME_KEY: str = "quiz_username"
    LEGACY_USERNAME_KEY: str = "quiz_user_email"
    HISTORY_KEY: str = "quiz_history"
    HISTORY_SCHEMA_VERSION: int = 1
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
