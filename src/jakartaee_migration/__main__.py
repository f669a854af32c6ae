"""Entry point for `python -m jakartaee_migration`."""

from jakartaee_migration.cli import main

if __name__ == "__main__":
    main()
