from ..errors import ActuatorError, ComputeError, FetchError
from ..gateway import ComputeGateway
from ..logger import logger


def control_plane_group_name(cluster_id: str, zone: str) -> str:
    return f"{cluster_id}-master-{zone}"


class ControlPlaneGroupRegistrar:
    """
    Keeps a control plane instance in its zonal `{cluster}-master-{zone}`
    instance group. Non control plane machines are left alone.
    """

    def __init__(
        self,
        gateway: ComputeGateway,
        project_id: str,
        zone: str,
        cluster_id: str,
        instance_link: str,
        is_control_plane: bool,
        network: str = "",
    ):
        self.gateway = gateway
        self.project_id = project_id
        self.zone = zone
        self.instance_link = instance_link
        self.is_control_plane = is_control_plane
        self.network = network
        self.group = control_plane_group_name(cluster_id, zone)

    def _running_instances(self) -> list[str]:
        try:
            return self.gateway.list_group_instances(
                self.project_id, self.zone, self.group
            )
        except ComputeError as e:
            raise FetchError(
                self.group,
                f"failed to fetch running instances in instance group "
                f"{self.group}: {e}",
                missing=e.not_found,
            ) from e

    def register(self) -> None:
        if not self.is_control_plane:
            return

        if self.instance_link in self._running_instances():
            logger.debug(f"Instance already registered in {self.group}")
            return

        logger.info(f"Registering instance {self.instance_link} in {self.group}")
        try:
            self.gateway.add_group_instances(
                self.project_id, self.zone, self.group, [self.instance_link]
            )
        except ComputeError as e:
            raise ActuatorError(
                f"InstanceGroupsAddInstances request failed: {e}"
            ) from e

    def unregister(self) -> None:
        if not self.is_control_plane:
            return

        if self.instance_link not in self._running_instances():
            logger.debug(f"Instance not registered in {self.group}")
            return

        logger.info(f"Unregistering instance {self.instance_link} from {self.group}")
        try:
            self.gateway.remove_group_instances(
                self.project_id, self.zone, self.group, [self.instance_link]
            )
        except ComputeError as e:
            raise ActuatorError(
                f"InstanceGroupsRemoveInstances request failed: {e}"
            ) from e

    def register_new_instance_group(self) -> None:
        logger.info(f"Creating instance group {self.group} in {self.zone}")
        try:
            self.gateway.insert_group(
                self.project_id, self.zone, self.group, network=self.network
            )
        except ComputeError as e:
            raise ActuatorError(f"instanceGroupInsert request failed: {e}") from e
