from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from manual_import.exceptions import ConfigError


@dataclass
class AppConfig:
    database_url: str
    actor_id: int
    decoder_url: str = ""
    decoder_timeout: float = 30.0
    max_docx_mb: float = 20.0
    max_pdf_mb: float = 50.0
    patterns: str = "generic"
    watermarks: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ConfigError("Database URL cannot be empty.")
        if self.actor_id <= 0:
            raise ConfigError("Actor ID must be a positive integer.")
        if self.decoder_url and not self.decoder_url.startswith(("http://", "https://")):
            raise ConfigError("Decoder URL must start with http:// or https://")
        if self.decoder_url.endswith("/"):
            self.decoder_url = self.decoder_url.rstrip("/")
        if self.decoder_timeout <= 0:
            raise ConfigError("Decoder timeout must be greater than zero.")
        if self.max_docx_mb <= 0 or self.max_pdf_mb <= 0:
            raise ConfigError("Size limits must be greater than zero.")
        self.watermarks = tuple(w for w in self.watermarks if w)
