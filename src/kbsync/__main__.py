"""Allow running as `python -m kbsync`."""

from kbsync.client.cli import main

if __name__ == "__main__":
    main()
