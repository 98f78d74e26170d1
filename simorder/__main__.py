"""Main entry point for running simorder as a module."""

from .cli import main

if __name__ == "__main__":
    main()
