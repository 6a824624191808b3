"""Module entrypoint for `python -m rowbind`."""

from rowbind.cli.app import main


if __name__ == "__main__":  # pragma: no cover - exercised via CLI tests
    main()
