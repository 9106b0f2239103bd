"""Entry point for running autorefactor as a module."""

from autorefactor.cli_entry import main

if __name__ == "__main__":
    main()
