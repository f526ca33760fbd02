"""Kube-apply state action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import json
import logging
import pathlib
import sys
from typing import cast

import yaml

from kube_apply.fingerprint import fingerprint
from kube_apply.manifest import ResourceSpec

from .apply import add_resource_flags, read_resource_doc

_LOGGER = logging.getLogger(__name__)


class StateAction:
    """Kube-apply state action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "state",
                help="Print the change-detection state of a resource",
                description="""Prints the fingerprint the plan engine stores for
                    the resource. Opaque manifest content is never included.""",
            ),
        )
        add_resource_flags(args)
        args.add_argument(
            "--output",
            "-o",
            choices=["yaml", "json"],
            default="yaml",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path: pathlib.Path,
        output: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        doc = await read_resource_doc(path)
        data = fingerprint(ResourceSpec.parse_doc(doc))
        if output == "json":
            print(json.dumps(data, sort_keys=True, indent=2))
            return
        yaml.dump(data, sys.stdout, sort_keys=True, explicit_start=True)
