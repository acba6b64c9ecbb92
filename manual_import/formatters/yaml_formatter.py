from __future__ import annotations

from typing import Any

import yaml

from manual_import.formatters.base import BaseFormatter


class YamlFormatter(BaseFormatter):
    def render(self, data: Any) -> str:
        return yaml.dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )
