"""Console entry point for the audio proxy CLI."""
from __future__ import annotations

import logging

from .app import app


def main() -> None:
    """Run the CLI; httpx request logging is kept quiet unless something fails."""

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    app(prog_name="audio-proxy-cli")


if __name__ == "__main__":
    main()
