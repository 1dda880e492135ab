"""
Preemption watcher for GCE instances.

Polls the metadata server's `preempted` endpoint and, once the instance has
been marked for termination, adds a Terminating condition to the Node so the
cluster can drain it before the VM disappears.
"""

import concurrent.futures
import threading
import time
from typing import Any

import requests
from tenacity import RetryError, Retrying, stop_after_delay, stop_never

from ..core import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    MARK_NODE_RETRY_CONFIG,
    MARK_NODE_TIMEOUT_SECONDS,
    METADATA_FLAVOR_HEADER,
    TERMINATION_ENDPOINT_URL,
)
from ..errors import (
    NodeMarkTimeoutError,
    TerminationEndpointError,
    TerminationError,
)
from ..logger import logger
from .conditions import add_termination_condition

# How often run() checks whether the poll task has finished
_WAKE_INTERVAL_SECONDS = 0.1
_REQUEST_TIMEOUT_SECONDS = 10


class TerminationHandler:
    def __init__(
        self,
        node_store: Any,
        node_name: str,
        namespace: str = "",
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        poll_url: str = TERMINATION_ENDPOINT_URL,
        session: requests.Session | None = None,
        retry_config: dict[str, Any] | None = None,
        mark_timeout: float = MARK_NODE_TIMEOUT_SECONDS,
    ):
        self.node_store = node_store
        self.node_name = node_name
        self.namespace = namespace
        self.poll_interval = poll_interval
        self.poll_url = poll_url
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.retry_config = retry_config or MARK_NODE_RETRY_CONFIG
        self.mark_timeout = mark_timeout

    @property
    def target(self) -> str:
        """Node identity used in log lines."""
        if self.namespace:
            return f"node {self.node_name} (namespace {self.namespace})"
        return f"node {self.node_name}"

    def run(self, stop: threading.Event) -> None:
        """
        Blocks until `stop` is set or the poll task finishes.

        On stop the poll task is cancelled and awaited, and its outcome is
        discarded. Otherwise the task's error, if any, is raised here.
        A session created by the handler is closed on return.
        """
        cancelled = threading.Event()
        try:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="termination-poll"
            ) as executor:
                future = executor.submit(self._run, cancelled)
                while True:
                    done, _ = concurrent.futures.wait(
                        [future], timeout=_WAKE_INTERVAL_SECONDS
                    )
                    if done:
                        future.result()
                        return
                    if stop.is_set():
                        logger.debug(
                            f"Stop requested, cancelling termination poll for "
                            f"{self.target}"
                        )
                        cancelled.set()
                        concurrent.futures.wait([future])
                        return
        finally:
            if self._owns_session:
                self.session.close()

    def _run(self, cancelled: threading.Event) -> None:
        logger.info(f"Monitoring {self.target} for termination")

        try:
            terminated = self._poll(cancelled)
        except TerminationEndpointError as e:
            raise TerminationError(f"error polling termination endpoint: {e}") from e

        if not terminated:
            # Cancelled before a positive signal; a preemption notice may have
            # raced the shutdown, so check once more.
            terminated = self.check_termination_endpoint()
            if not terminated:
                return

        logger.info(
            f"Instance marked for termination, marking {self.target} for deletion"
        )
        self._mark_node_with_retry()

    def _poll(self, cancelled: threading.Event) -> bool:
        """Returns True on termination, False once cancelled."""
        while True:
            if self.check_termination_endpoint():
                return True
            logger.debug(f"Instance of {self.target} not marked for termination")
            if cancelled.wait(self.poll_interval):
                return False

    def _mark_node_with_retry(self) -> None:
        deadline = time.monotonic() + self.mark_timeout

        retry_config = dict(self.retry_config)
        retry_config["stop"] = retry_config.get("stop", stop_never) | stop_after_delay(
            self.mark_timeout
        )
        retrying = Retrying(
            **retry_config,
            before_sleep=lambda state: logger.error(
                f"{self.target} not marked for termination: "
                f"{state.outcome.exception()}"
            ),
        )
        try:
            retrying(self.mark_node_for_deletion, deadline)
        except RetryError as e:
            raise NodeMarkTimeoutError(
                f"error marking node: {e.last_attempt.exception()}"
            ) from e

    def check_termination_endpoint(self) -> bool:
        try:
            response = self.session.get(
                self.poll_url,
                headers=METADATA_FLAVOR_HEADER,
                timeout=_REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise TerminationEndpointError(
                f"could not get URL {self.poll_url!r}: {e}"
            ) from e

        # Anything but a bare TRUE, FALSE included, means not yet terminated
        return response.text == "TRUE"

    def _time_left(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TerminationError(
                f"node marking exceeded {self.mark_timeout}s budget"
            )
        return remaining

    def mark_node_for_deletion(self, deadline: float | None = None) -> None:
        """
        Adds the Terminating condition to the node. With a monotonic
        `deadline`, every API request is bounded by the time left.
        """
        try:
            node = self.node_store.get_node(
                self.node_name, timeout=self._time_left(deadline)
            )
        except Exception as e:
            raise TerminationError(f"error fetching node: {e}") from e

        node.status.conditions = add_termination_condition(node.status.conditions)

        try:
            self.node_store.update_node_status(
                node, timeout=self._time_left(deadline)
            )
        except Exception as e:
            raise TerminationError(f"error updating node status: {e}") from e
