"""
Machine lifecycle reconciliation against Compute Engine.

The outer control loop builds one Reconciler per machine and invocation and
guarantees invocations for the same machine never overlap. The reconciler
mutates the machine's status, labels and annotations in place (plus
`spec.provider_id` and the node labels in `spec.labels`); the provider spec is
never modified.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..core import (
    CLUSTER_ID_LABEL,
    COMPUTE_API_BASE,
    INSTANCE_STATE_ANNOTATION,
    INSTANCE_TYPE_LABEL,
    INTERRUPTIBLE_INSTANCE_LABEL,
    MACHINE_CREATED_CONDITION,
    MACHINE_CREATION_FAILED_REASON,
    MACHINE_CREATION_SUCCEEDED_MESSAGE,
    MACHINE_CREATION_SUCCEEDED_REASON,
    MACHINE_ROLE_LABEL,
    MACHINE_VALIDATION_FAILED_REASON,
    MASTER_MACHINE_ROLE,
    REGION_LABEL,
    REQUEUE_AFTER_SECONDS,
    RUNNING_INSTANCE_STATE,
    ZONE_LABEL,
)
from ..errors import (
    ActuatorError,
    ComputeError,
    FetchError,
    InvalidMachineConfiguration,
    MachineValidationError,
    RequeueAfterError,
)
from ..gateway import ComputeGateway
from ..logger import logger
from ..schemas.machine import Condition, Machine, NodeAddress
from .instance import build_instance, network_resource_name
from .instancegroups import ControlPlaneGroupRegistrar
from .targetpools import PoolFunc, TargetPoolManager
from .userdata import UserDataResolver


def fmt_instance_self_link(project: str, zone: str, name: str) -> str:
    return f"{COMPUTE_API_BASE}/projects/{project}/zones/{zone}/instances/{name}"


def fmt_provider_id(project: str, zone: str, name: str) -> str:
    return f"gce://{project}/{zone}/{name}"


def validate_machine(machine: Machine) -> None:
    for pool in machine.spec.provider_spec.target_pools or []:
        if not pool:
            raise MachineValidationError("all target pools must have valid name")

    if not machine.metadata.labels.get(CLUSTER_ID_LABEL):
        raise MachineValidationError(
            f'machine is missing "{CLUSTER_ID_LABEL}" label'
        )


def reconcile_conditions(
    conditions: list[Condition], new: Condition
) -> list[Condition]:
    """
    Replaces the condition of the same type in place, or appends it.
    The transition time only moves when the status flips.
    """
    now = datetime.now(timezone.utc)
    for i, existing in enumerate(conditions):
        if existing.type != new.type:
            continue
        if existing.status == new.status and existing.last_transition_time:
            transition = existing.last_transition_time
        else:
            transition = now
        conditions[i] = new.model_copy(update={"last_transition_time": transition})
        return conditions

    conditions.append(new.model_copy(update={"last_transition_time": now}))
    return conditions


@dataclass
class MachineScope:
    machine: Machine
    gateway: ComputeGateway
    secret_store: Any
    project_id: str = ""
    provider_id: str = field(init=False)

    def __post_init__(self) -> None:
        spec = self.machine.spec.provider_spec
        if not self.project_id:
            self.project_id = spec.project_id
        self.provider_id = fmt_provider_id(
            self.project_id, spec.zone, self.machine.metadata.name
        )


class Reconciler:
    def __init__(self, scope: MachineScope):
        self.scope = scope
        self.machine = scope.machine
        self.provider_spec = scope.machine.spec.provider_spec
        self.provider_status = scope.machine.status.provider_status
        self.gateway = scope.gateway
        self.project_id = scope.project_id
        self.zone = self.provider_spec.zone
        self.name = self.machine.metadata.name

        self.instance_link = fmt_instance_self_link(
            self.project_id, self.zone, self.name
        )
        self.user_data = UserDataResolver(scope.secret_store)
        self.target_pools = TargetPoolManager(
            self.gateway,
            self.project_id,
            self.provider_spec.region,
            self.provider_spec.target_pools,
            self.instance_link,
        )
        self.instance_group = ControlPlaneGroupRegistrar(
            self.gateway,
            self.project_id,
            self.zone,
            self.machine.metadata.labels.get(CLUSTER_ID_LABEL, ""),
            self.instance_link,
            is_control_plane=self.is_control_plane,
            network=self._primary_network(),
        )

    @property
    def is_control_plane(self) -> bool:
        return self.machine.metadata.labels.get(MACHINE_ROLE_LABEL) == MASTER_MACHINE_ROLE

    def _primary_network(self) -> str:
        if not self.provider_spec.network_interfaces:
            return ""
        nic = self.provider_spec.network_interfaces[0]
        if not nic.network:
            return ""
        return network_resource_name(nic.project_id or self.project_id, nic.network)

    def _set_created_condition(self, status: bool, reason: str, message: str) -> None:
        self.provider_status.conditions = reconcile_conditions(
            self.provider_status.conditions,
            Condition(
                type=MACHINE_CREATED_CONDITION,
                status=status,
                reason=reason,
                message=message,
            ),
        )

    def _validate(self) -> None:
        try:
            validate_machine(self.machine)
        except MachineValidationError as e:
            raise MachineValidationError(
                f"failed validating machine provider spec: {e}"
            ) from e

    # Operations exposed to the control loop

    def create(self) -> None:
        try:
            self._validate()
        except MachineValidationError as e:
            self._set_created_condition(False, MACHINE_VALIDATION_FAILED_REASON, str(e))
            raise

        try:
            user_data = self.user_data.resolve(
                self.provider_spec, self.machine.metadata.namespace
            )
        except InvalidMachineConfiguration as e:
            self._set_created_condition(False, MACHINE_CREATION_FAILED_REASON, str(e))
            raise InvalidMachineConfiguration(
                e.message, prefix="error getting custom user data: "
            ) from e

        instance = build_instance(self.machine, self.project_id, user_data)

        logger.info(f"{self.name}: creating instance in {self.zone}")
        try:
            self.gateway.insert_instance(self.project_id, self.zone, instance)
        except ComputeError as e:
            if e.permanent:
                # Condition and error carry the same provider message
                self._set_created_condition(
                    False, MACHINE_CREATION_FAILED_REASON, e.message
                )
                logger.info(f"{self.name}: error launching instance: {e}")
                raise InvalidMachineConfiguration(
                    e.message, code=e.code, prefix="error launching instance: "
                ) from e
            self._set_created_condition(False, MACHINE_CREATION_FAILED_REASON, str(e))
            raise ActuatorError(
                f"failed to create instance via compute service: {e}"
            ) from e

        logger.info(f"{self.name}: successfully created a new machine")
        self._set_created_condition(
            True, MACHINE_CREATION_SUCCEEDED_REASON, MACHINE_CREATION_SUCCEEDED_MESSAGE
        )

    def exists(self) -> bool:
        self._validate()
        try:
            self.gateway.get_instance(self.project_id, self.zone, self.name)
        except ComputeError as e:
            if e.not_found:
                logger.info(f"{self.name}: machine does not exist")
                return False
            raise ActuatorError(f"error getting running instances: {e}") from e
        return True

    def update(self) -> None:
        self._validate()

        self.process_target_pools(True, self.target_pools.add_instance)

        if self.is_control_plane:
            self.register_instance_to_control_plane_instance_group()

        self.reconcile_machine_with_cloud_state()

        if self.provider_status.instance_state != RUNNING_INSTANCE_STATE:
            logger.info(
                f"{self.name}: instance state {self.provider_status.instance_state}, "
                "requeuing"
            )
            raise RequeueAfterError(REQUEUE_AFTER_SECONDS)

    def delete(self) -> None:
        try:
            self.gateway.get_instance(self.project_id, self.zone, self.name)
        except ComputeError as e:
            if e.not_found:
                logger.info(f"{self.name}: machine not found during delete, skipping")
                return
            raise ActuatorError(f"error getting running instances: {e}") from e

        self.process_target_pools(False, self.target_pools.remove_instance)

        if self.is_control_plane:
            try:
                self.instance_group.unregister()
            except ActuatorError as e:
                raise ActuatorError(
                    f"failed to unregister instance from instance group: {e}"
                ) from e

        try:
            self.gateway.delete_instance(self.project_id, self.zone, self.name)
        except ComputeError as e:
            raise ActuatorError(
                f"failed to delete instance via compute service: {e}"
            ) from e

        # Deletion is asynchronous; the next call confirms the instance is gone
        logger.info(f"{self.name}: deletion requested, requeuing")
        raise RequeueAfterError(REQUEUE_AFTER_SECONDS)

    def reconcile_machine_with_cloud_state(self, instance: Any = None) -> None:
        logger.info(f"{self.name}: reconciling machine object with cloud state")
        if instance is None:
            try:
                instance = self.gateway.get_instance(
                    self.project_id, self.zone, self.name
                )
            except ComputeError as e:
                raise ActuatorError(
                    f"failed to get instance via compute service: {e}"
                ) from e

        addresses = []
        for nic in instance.network_interfaces:
            addresses.append(NodeAddress(type="InternalIP", address=nic.network_i_p))
            for access_config in nic.access_configs:
                if access_config.nat_i_p:
                    addresses.append(
                        NodeAddress(type="ExternalIP", address=access_config.nat_i_p)
                    )

        self.machine.spec.provider_id = self.scope.provider_id
        self.machine.status.addresses = addresses
        self.provider_status.instance_state = instance.status
        self.provider_status.instance_id = instance.name

        self.set_machine_cloud_provider_specifics(instance)

    # Membership

    def process_target_pools(self, desired: bool, apply: PoolFunc) -> None:
        self.target_pools.reconcile(desired, apply)

    def register_instance_to_control_plane_instance_group(self) -> None:
        try:
            self.instance_group.register()
        except FetchError as e:
            if not e.missing:
                raise
            logger.info(f"Instance group {e.resource} does not exist, creating it")
            self.register_new_instance_group()
            self.instance_group.register()

    def unregister_instance_from_control_plane_instance_group(self) -> None:
        self.instance_group.unregister()

    def register_new_instance_group(self) -> None:
        self.instance_group.register_new_instance_group()

    def set_machine_cloud_provider_specifics(self, instance: Any) -> None:
        self.machine.metadata.annotations[INSTANCE_STATE_ANNOTATION] = instance.status

        labels = self.machine.metadata.labels
        labels[INSTANCE_TYPE_LABEL] = self.provider_spec.machine_type
        labels[REGION_LABEL] = self.provider_spec.region
        labels[ZONE_LABEL] = self.provider_spec.zone

        if self.provider_spec.preemptible:
            # Presence is what matters; the value is left empty
            self.machine.spec.labels[INTERRUPTIBLE_INSTANCE_LABEL] = ""
