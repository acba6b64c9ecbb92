from __future__ import annotations

import json
from typing import Any

from manual_import.formatters.base import BaseFormatter


class JsonFormatter(BaseFormatter):
    def render(self, data: Any) -> str:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
