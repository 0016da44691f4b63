"""
Run the demo command set: python -m argline [--debug] <command> [args...]

A leading --debug routes the library's log records to stderr.
"""
import logging
import sys

from .demo import build
from .runner import configure_logging, invoke, tokenize

__prog__ = "cli"


def main(argv=None):
    """
    Console entry point. Results are printed by the runner, not returned.
    """
    tokens = tokenize(sys.argv[1:] if argv is None else argv)
    if tokens[:1] == ["--debug"]:
        configure_logging(logging.DEBUG)
        del tokens[0]
    invoke(build(), tokens, colorful=True)


if __name__ == "__main__":
    main()
