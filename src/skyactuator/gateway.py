"""
Narrow Compute Engine surface used by the machine reconciler.

Every SDK failure is translated here, once, into a ComputeError tagged as
transient, permanent or not-found. Nothing downstream inspects google-api-core
exception types.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from google.api_core import exceptions
from google.cloud import compute_v1

from .core import CONTROL_PLANE_NAMED_PORT, RUNNING_INSTANCE_STATE
from .errors import ComputeError, ComputeErrorKind
from .logger import logger


def classify(error: Exception, prefix: str = "") -> ComputeError:
    """Maps an SDK or transport exception onto a tagged ComputeError."""
    if isinstance(error, exceptions.NotFound):
        kind = ComputeErrorKind.NOT_FOUND
    elif isinstance(error, exceptions.GoogleAPICallError) and error.code and (
        400 <= int(error.code) < 500
    ):
        kind = ComputeErrorKind.PERMANENT
    else:
        kind = ComputeErrorKind.TRANSIENT

    if isinstance(error, exceptions.GoogleAPICallError):
        code = int(error.code) if error.code else None
        message = error.message or str(error)
    else:
        code = None
        message = str(error)

    return ComputeError(kind, message, code=code, text=f"{prefix}{error}")


@contextmanager
def _api_call(request: str, prefix: str = "") -> Iterator[None]:
    try:
        yield
    except ComputeError:
        raise
    except Exception as e:
        err = classify(e, prefix)
        logger.debug(f"{request} failed ({err.kind.value}): {err}")
        raise err from e


class ComputeGateway:
    def __init__(self, instances: Any, instance_groups: Any, target_pools: Any):
        self.instances = instances
        self.instance_groups = instance_groups
        self.target_pools = target_pools

    # Instances

    def insert_instance(
        self, project: str, zone: str, instance: compute_v1.Instance
    ) -> Any:
        with _api_call("instancesInsert"):
            return self.instances.insert(
                project=project, zone=zone, instance_resource=instance
            )

    def get_instance(self, project: str, zone: str, name: str) -> Any:
        with _api_call("instancesGet"):
            return self.instances.get(project=project, zone=zone, instance=name)

    def delete_instance(self, project: str, zone: str, name: str) -> Any:
        with _api_call("instancesDelete"):
            return self.instances.delete(project=project, zone=zone, instance=name)

    # Instance groups

    def list_group_instances(self, project: str, zone: str, group: str) -> list[str]:
        """
        Returns the self-links of the RUNNING instances in a zonal group.
        """
        request = compute_v1.InstanceGroupsListInstancesRequest(
            instance_state=RUNNING_INSTANCE_STATE
        )
        with _api_call(
            "instanceGroupsListInstances",
            prefix="instanceGroupsListInstances request failed: ",
        ):
            return [
                item.instance
                for item in self.instance_groups.list_instances(
                    project=project,
                    zone=zone,
                    instance_group=group,
                    instance_groups_list_instances_request_resource=request,
                )
            ]

    def add_group_instances(
        self, project: str, zone: str, group: str, instance_links: list[str]
    ) -> Any:
        request = compute_v1.InstanceGroupsAddInstancesRequest(
            instances=[compute_v1.InstanceReference(instance=i) for i in instance_links]
        )
        with _api_call("instanceGroupsAddInstances"):
            return self.instance_groups.add_instances(
                project=project,
                zone=zone,
                instance_group=group,
                instance_groups_add_instances_request_resource=request,
            )

    def remove_group_instances(
        self, project: str, zone: str, group: str, instance_links: list[str]
    ) -> Any:
        request = compute_v1.InstanceGroupsRemoveInstancesRequest(
            instances=[compute_v1.InstanceReference(instance=i) for i in instance_links]
        )
        with _api_call("instanceGroupsRemoveInstances"):
            return self.instance_groups.remove_instances(
                project=project,
                zone=zone,
                instance_group=group,
                instance_groups_remove_instances_request_resource=request,
            )

    def insert_group(
        self, project: str, zone: str, group: str, network: str = ""
    ) -> Any:
        port_name, port = CONTROL_PLANE_NAMED_PORT
        instance_group = compute_v1.InstanceGroup(
            name=group,
            named_ports=[compute_v1.NamedPort(name=port_name, port=port)],
        )
        if network:
            instance_group.network = network
        with _api_call("instanceGroupsInsert"):
            return self.instance_groups.insert(
                project=project, zone=zone, instance_group_resource=instance_group
            )

    # Target pools

    def target_pool_instances(self, project: str, region: str, pool: str) -> list[str]:
        with _api_call("targetPoolsGet"):
            target_pool = self.target_pools.get(
                project=project, region=region, target_pool=pool
            )
            return list(target_pool.instances) if target_pool.instances else []

    def add_target_pool_instance(
        self, project: str, region: str, pool: str, instance_link: str
    ) -> Any:
        request = compute_v1.TargetPoolsAddInstanceRequest(
            instances=[compute_v1.InstanceReference(instance=instance_link)]
        )
        with _api_call("targetPoolsAddInstance"):
            return self.target_pools.add_instance(
                project=project,
                region=region,
                target_pool=pool,
                target_pools_add_instance_request_resource=request,
            )

    def remove_target_pool_instance(
        self, project: str, region: str, pool: str, instance_link: str
    ) -> Any:
        request = compute_v1.TargetPoolsRemoveInstanceRequest(
            instances=[compute_v1.InstanceReference(instance=instance_link)]
        )
        with _api_call("targetPoolsRemoveInstance"):
            return self.target_pools.remove_instance(
                project=project,
                region=region,
                target_pool=pool,
                target_pools_remove_instance_request_resource=request,
            )
