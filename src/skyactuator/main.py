import argparse
import os
import signal
import sys
import threading

from pydantic import ValidationError
from rich.console import Console

from . import __version__
from .clients import get_core_v1_api
from .core import DEFAULT_POLL_INTERVAL_SECONDS
from .errors import ActuatorError
from .logger import level_for_verbosity, setup_logger
from .schemas.config import TerminationHandlerConfig
from .stores import KubernetesNodeStore
from .termination.handler import TerminationHandler


def parse_config(argv: list[str] | None = None) -> tuple[TerminationHandlerConfig, int]:
    parser = argparse.ArgumentParser(
        description="Marks the Node for deletion when GCE preempts this instance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch the local instance, node name from the downward API
  NODE_NAME=worker-a skyactuator-termination-handler

  # Poll every 10 seconds with a local kubeconfig
  skyactuator-termination-handler --node-name worker-a --poll-interval 10 \\
      --kubeconfig ~/.kube/config -v
""",
    )
    parser.add_argument(
        "--version", action="version", version=f"skyactuator v{__version__}"
    )

    parser.add_argument(
        "--node-name",
        default=os.environ.get("NODE_NAME", ""),
        help="Name of the Node to mark (default: $NODE_NAME)",
    )
    parser.add_argument(
        "--namespace",
        default=os.environ.get("NAMESPACE", ""),
        help="Namespace the handler runs in (default: $NAMESPACE)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        help=f"Seconds between checks (default: {DEFAULT_POLL_INTERVAL_SECONDS})",
    )
    parser.add_argument("--kubeconfig", help="Path to a kubeconfig file")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    args = parser.parse_args(argv)

    try:
        config = TerminationHandlerConfig(
            node_name=args.node_name,
            namespace=args.namespace,
            poll_interval=args.poll_interval,
            kubeconfig=args.kubeconfig,
        )
    except ValidationError as e:
        parser.error(f"invalid configuration: {e}")

    return config, args.verbose


def main(argv: list[str] | None = None) -> None:
    config, verbosity = parse_config(argv)

    logger = setup_logger(level=level_for_verbosity(verbosity))

    stop = threading.Event()

    def _request_stop(signum: int, _frame: object) -> None:
        logger.info(f"Received signal {signum}, shutting down")
        stop.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    handler = TerminationHandler(
        node_store=KubernetesNodeStore(get_core_v1_api(config.kubeconfig)),
        node_name=config.node_name,
        namespace=config.namespace,
        poll_interval=config.poll_interval,
        poll_url=config.endpoint_url,
    )

    try:
        handler.run(stop)
    except ActuatorError as e:
        logger.error(f"Termination handler failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[bold red]Operation cancelled by user.[/bold red]")
        sys.exit(130)
