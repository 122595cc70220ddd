"""Package entry point for ``python -m caption_sync``."""

from caption_sync.cli import main

if __name__ == "__main__":
    main()
