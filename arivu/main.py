"""Entry point: ``python -m arivu.main <command>`` or the ``arivu`` script."""

import sys


def main():
    from arivu.interfaces.cli import main as run_cli_main

    sys.exit(run_cli_main(sys.argv[1:]))


if __name__ == "__main__":
    main()
