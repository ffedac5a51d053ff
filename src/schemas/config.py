"""Converter configuration schema."""

from pydantic import BaseModel, ConfigDict

DEFAULT_AUTHOR = "Unknown Author"
DEFAULT_LANGUAGE = "en"
DEFAULT_OUTPUT_DIR = "./output"
DEFAULT_RIGHTS = "All rights reserved"


class ConverterConfig(BaseModel):
    """Options merged from defaults, rc files, and command-line overrides."""

    model_config = ConfigDict(extra="ignore")

    author: str = DEFAULT_AUTHOR
    language: str = DEFAULT_LANGUAGE
    publisher: str | None = ""
    cover: str | None = None
    output_dir: str = DEFAULT_OUTPUT_DIR
    title: str | None = None
    description: str | None = None
    rights: str | None = DEFAULT_RIGHTS
    identifier: str | None = None
