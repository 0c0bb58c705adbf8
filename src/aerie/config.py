import os


class Settings:
    PROJECT_NAME: str = "aerie"
    DEBUG: bool = False
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "aerie.log"
    QUESTION_BANK_DIR: str = os.environ.get("QUESTION_BANK_DIR", "question_bank")
    TEST_SIZE: int = 5
    TEST_DURATION_SECONDS: int = 15 * 60
    SESSION_COOKIE_NAME: str = "exam_session_id"
    CLIENT_COOKIE_NAME: str = "aerie_client_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")

    # Gemini
    QUESTION_SOURCE: str = os.environ.get("QUESTION_SOURCE", "ai")
    API_KEY: str = os.environ.get("API_KEY") or os.environ.get("GEMINI_API_KEY", "")
    CHAT_MODEL: str = os.environ.get("CHAT_MODEL", "gemini-3-flash-preview")
    GENERATION_MODEL: str = os.environ.get("GENERATION_MODEL", "gemini-3-pro-preview")
    GENERATION_TIMEOUT_SECONDS: float = float(
        os.environ.get("GENERATION_TIMEOUT_SECONDS", "60")
    )
    THINKING_BUDGET: int = int(os.environ.get("THINKING_BUDGET", "16384"))
    CHAT_TEMPERATURE: float = 0.7

    COURSES_URL: str = "https://www.aerieacademy.com/courses"
    SUBJECTS = ["GATE - Aptitude", "Common Part", "Part B1", "Part B2"]


settings = Settings()
