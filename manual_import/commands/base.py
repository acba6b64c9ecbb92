from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from manual_import.exceptions import ConfigError
from manual_import.formatters.base import BaseFormatter
from manual_import.formatters.json_formatter import JsonFormatter
from manual_import.formatters.markdown_formatter import MarkdownFormatter
from manual_import.formatters.yaml_formatter import YamlFormatter

OUTPUT_FORMATS = ("markdown", "json", "yaml")


class BaseCommand(ABC):
    def __init__(
        self,
        *,
        output_format: str = "markdown",
        output_path: Optional[Path] = None,
        force: bool = False,
    ) -> None:
        self.output_path = output_path
        self.force = force
        self._overwrite_all = False
        self._formatters: Dict[str, BaseFormatter] = {
            "markdown": MarkdownFormatter(),
            "json": JsonFormatter(),
            "yaml": YamlFormatter(),
        }
        if output_format not in self._formatters:
            raise ConfigError(
                f"Unknown output format '{output_format}'. "
                f"Choose one of: {', '.join(OUTPUT_FORMATS)}."
            )
        self.output_format = output_format

    @abstractmethod
    def run(self) -> None:
        """Execute the command and report progress."""
        ...

    def _log(self, message: str) -> None:
        print(message)

    def _should_write(self, path: Path) -> bool:
        """Check whether *path* should be written, prompting if needed."""
        if not path.exists():
            return True
        if self.force or self._overwrite_all:
            return True
        while True:
            answer = input(
                f"Overwrite existing {path.name}? [Yes/No/All] "
            ).strip().lower()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            if answer in ("a", "all"):
                self._overwrite_all = True
                return True

    def _emit(self, data: Any) -> None:
        """Write *data* to the output file, or print it when there is none."""
        formatter = self._formatters[self.output_format]
        if self.output_path is None:
            print(formatter.render(data), end="")
            return
        if self._should_write(self.output_path):
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            formatter.write(data, self.output_path)
            self._log(f"Wrote {self.output_path}")
