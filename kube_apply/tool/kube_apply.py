"""Command line tool for applying manifests as plan resources."""

import argparse
import asyncio
import logging
import sys
import traceback

from kube_apply.exceptions import ApplyException
from . import apply, state

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for applying Kubernetes manifests.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    apply.ApplyAction.register(subparsers)
    state.StateAction.register(subparsers)
    return parser


def main() -> None:
    """Kube-apply command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except ApplyException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("kube-apply error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
