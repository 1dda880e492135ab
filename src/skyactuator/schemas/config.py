from pydantic import BaseModel, Field

from ..core import DEFAULT_POLL_INTERVAL_SECONDS, TERMINATION_ENDPOINT_URL


class TerminationHandlerConfig(BaseModel):
    node_name: str = Field(min_length=1)
    namespace: str = ""
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        gt=0,
        description="Seconds between termination endpoint checks",
    )
    kubeconfig: str | None = None
    endpoint_url: str = TERMINATION_ENDPOINT_URL
