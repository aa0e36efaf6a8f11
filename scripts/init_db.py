"""Initialize the MediaVault database and media directories."""

import sys

from mediavault.config import load_config
from mediavault.exceptions import StoreUnavailableError
from mediavault.logging import configure_logging


def main() -> int:
    configure_logging()
    try:
        config = load_config()
    except StoreUnavailableError as exc:
        print(f"init failed: {exc}", file=sys.stderr)
        return 2
    print(f"Database initialized at {config.database_url}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
