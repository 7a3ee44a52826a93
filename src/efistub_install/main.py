import logging
import sys

from efistub_install.cli import run_cli


def setup_logging() -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('[%(levelname)s]: %(message)s'))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


def main(argv=None):
    setup_logging()
    code = run_cli(sys.argv[1:] if argv is None else argv)
    sys.exit(code)


if __name__ == '__main__':
    main()
