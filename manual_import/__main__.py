from __future__ import annotations

import sys

from manual_import.cli import main as cli_main
from manual_import.exceptions import ManualImportError


def main() -> None:
    try:
        cli_main()
    except ManualImportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print()
        sys.exit(130)


if __name__ == "__main__":
    main()
