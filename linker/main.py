"""Main entry point for linker."""
from linker.cli import cli

if __name__ == "__main__":
    cli()
