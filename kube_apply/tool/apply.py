"""Kube-apply apply action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import Any, cast

import aiofiles
import yaml

from kube_apply.apply import ApiserverApply
from kube_apply.command import LocalRunner
from kube_apply.config import ApplyConfig, DEFAULT_FETCH_TIMEOUT, DEFAULT_WAIT_TIMEOUT
from kube_apply.exceptions import ConfigurationError
from kube_apply.manifest import ResourceSpec

_LOGGER = logging.getLogger(__name__)


async def read_resource_doc(path: pathlib.Path) -> dict[str, Any]:
    """Read a resource plan document from a YAML file."""
    try:
        async with aiofiles.open(path) as f:
            content = await f.read()
    except OSError as err:
        raise ConfigurationError(f"Unable to read resource file {path}: {err}") from err
    try:
        doc = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise ConfigurationError(f"Unable to parse resource file {path}: {err}") from err
    if not isinstance(doc, dict):
        raise ConfigurationError(f"Resource file {path} must contain a mapping")
    return doc


def add_resource_flags(args: ArgumentParser) -> None:
    """Add flags for locating the resource file."""
    args.add_argument(
        "path", type=pathlib.Path, help="Path to the resource plan document"
    )


class ApplyAction:
    """Kube-apply apply action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "apply",
                help="Apply the manifest described by a resource plan document",
                description="""Resolves the manifest of the resource, moves it
                    into the configured namespace, applies it with kubectl and
                    waits for the configured condition.""",
            ),
        )
        add_resource_flags(args)
        args.add_argument(
            "--kubectl", type=str, default="kubectl", help="Path to kubectl binary"
        )
        args.add_argument("--kubeconfig", type=str, help="Path to kubeconfig file")
        args.add_argument("--context", type=str, help="Kubeconfig context to use")
        args.add_argument(
            "--wait-timeout",
            type=float,
            default=DEFAULT_WAIT_TIMEOUT,
            help="Seconds to wait for the condition after applying",
        )
        args.add_argument(
            "--fetch-timeout",
            type=float,
            default=DEFAULT_FETCH_TIMEOUT,
            help="Seconds allowed for fetching a remote manifest",
        )
        args.add_argument(
            "--timeout",
            type=float,
            default=None,
            help="Overall deadline in seconds for the apply",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path: pathlib.Path,
        kubectl: str,
        kubeconfig: str | None,
        context: str | None,
        wait_timeout: float,
        fetch_timeout: float,
        timeout: float | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = ApplyConfig(
            kubectl_bin=kubectl,
            kubeconfig=kubeconfig,
            context=context,
            wait_timeout=wait_timeout,
            fetch_timeout=fetch_timeout,
        )
        doc = await read_resource_doc(path)
        resource = ApiserverApply(ResourceSpec.parse_doc(doc), config=config)
        outcome = await resource.apply(LocalRunner(timeout=timeout))
        if outcome.error:
            raise outcome.error
        print(f"{path}: applied ({outcome.phase.value})")
