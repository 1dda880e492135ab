from __future__ import annotations

from typing import Any

from google.cloud import compute_v1
from kubernetes import client, config

from .gateway import ComputeGateway

# Client factories. Each call builds a fresh handle; the wiring code owns it
# and passes it to the components that need it.


def get_instances_client() -> Any:
    return compute_v1.InstancesClient()


def get_instance_groups_client() -> Any:
    return compute_v1.InstanceGroupsClient()


def get_target_pools_client() -> Any:
    return compute_v1.TargetPoolsClient()


def build_compute_gateway() -> ComputeGateway:
    return ComputeGateway(
        instances=get_instances_client(),
        instance_groups=get_instance_groups_client(),
        target_pools=get_target_pools_client(),
    )


def get_core_v1_api(kubeconfig: str | None = None) -> Any:
    """
    Loads in-cluster credentials, falling back to a kubeconfig file.
    """
    if kubeconfig:
        config.load_kube_config(config_file=kubeconfig)
    else:
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()
    return client.CoreV1Api()
