from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from pathlib import Path

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    output_dir: Path = Field(default=Path("./out"), alias="URLMAP_OUTPUT_DIR")
    cache_dir: Path = Field(default=Path("./.cache"), alias="URLMAP_CACHE_DIR")

    # Bearer token for archives fetched over http(s)
    http_token: str | None = Field(default=None, alias="URLMAP_HTTP_TOKEN")

    classes_root: str = Field(default="WEB-INF/classes/", alias="URLMAP_CLASSES_ROOT")
    descriptor_entry: str = Field(default="WEB-INF/web.xml", alias="URLMAP_DESCRIPTOR_ENTRY")

    log_level: str = Field(default="WARNING", alias="URLMAP_LOG_LEVEL")

settings = Settings()
