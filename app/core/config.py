from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./blog.db")

    # Notion (source des documents)
    NOTION_TOKEN = getenv("NOTION_TOKEN", "")
    NOTION_DATABASE_ID = getenv("NOTION_DATABASE_ID", "")
    NOTION_API_URL = getenv("NOTION_API_URL", "https://api.notion.com/v1")
    NOTION_VERSION = getenv("NOTION_VERSION", "2022-06-28")
    NOTION_TIMEOUT = int(getenv("NOTION_TIMEOUT", "30"))

    # Drafts
    DRAFT_TOKEN_TTL_DAYS = int(getenv("DRAFT_TOKEN_TTL_DAYS", "7"))  #expire au bout de 7 jours
    DEFAULT_AUTHOR_COLOR = getenv("DEFAULT_AUTHOR_COLOR", "#3B82F6")

    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

settings = Settings()
