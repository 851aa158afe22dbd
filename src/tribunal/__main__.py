"""Allow running as `python -m tribunal`."""

from tribunal.cli import main

if __name__ == "__main__":
    main()
