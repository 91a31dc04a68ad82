"""Entry point for the houndsite CLI when run as ``python -m houndsite``."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
