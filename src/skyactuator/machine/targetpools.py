from collections.abc import Callable

from ..errors import ActuatorError, ComputeError
from ..gateway import ComputeGateway
from ..logger import logger

PoolFunc = Callable[[str, str], None]


class TargetPoolManager:
    def __init__(
        self,
        gateway: ComputeGateway,
        project_id: str,
        region: str,
        target_pools: list[str] | None,
        instance_link: str,
    ):
        self.gateway = gateway
        self.project_id = project_id
        self.region = region
        self.target_pools = target_pools
        self.instance_link = instance_link

    def reconcile(self, desired: bool, apply: PoolFunc) -> None:
        """
        Calls `apply(pool, instance_link)` for every pool whose membership
        disagrees with `desired`. Stops on the first error without rolling
        back; the next pass converges.
        """
        # Target pools may be empty or unset, and that's okay.
        if not self.target_pools:
            return

        for pool in self.target_pools:
            try:
                members = self.gateway.target_pool_instances(
                    self.project_id, self.region, pool
                )
            except ComputeError as e:
                raise ActuatorError(f"unable to get targetpool: {e}") from e

            present = self.instance_link in members
            if present == desired:
                continue

            apply(pool, self.instance_link)

    def add_instance(self, pool: str, instance_link: str) -> None:
        logger.info(f"Adding instance {instance_link} to target pool {pool}")
        try:
            self.gateway.add_target_pool_instance(
                self.project_id, self.region, pool, instance_link
            )
        except ComputeError as e:
            raise ActuatorError(
                f"failed to add instance {instance_link} to target pool {pool}: {e}"
            ) from e

    def remove_instance(self, pool: str, instance_link: str) -> None:
        logger.info(f"Removing instance {instance_link} from target pool {pool}")
        try:
            self.gateway.remove_target_pool_instance(
                self.project_id, self.region, pool, instance_link
            )
        except ComputeError as e:
            raise ActuatorError(
                f"failed to remove instance {instance_link} "
                f"from target pool {pool}: {e}"
            ) from e
