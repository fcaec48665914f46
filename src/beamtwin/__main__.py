"""Entry point for ``python -m beamtwin [settings.json]``."""
import sys

from beamtwin.main import main

if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
