from kubernetes import config

from skyactuator import clients
from skyactuator.gateway import ComputeGateway


def test_build_compute_gateway(mocker):
    instances = mocker.patch("skyactuator.clients.compute_v1.InstancesClient")
    groups = mocker.patch("skyactuator.clients.compute_v1.InstanceGroupsClient")
    pools = mocker.patch("skyactuator.clients.compute_v1.TargetPoolsClient")

    gateway = clients.build_compute_gateway()

    assert isinstance(gateway, ComputeGateway)
    assert gateway.instances is instances.return_value
    assert gateway.instance_groups is groups.return_value
    assert gateway.target_pools is pools.return_value


def test_factories_build_fresh_clients(mocker):
    mocker.patch(
        "skyactuator.clients.compute_v1.InstancesClient",
        side_effect=lambda: mocker.Mock(),
    )

    assert clients.get_instances_client() is not clients.get_instances_client()


def test_core_v1_api_in_cluster(mocker):
    in_cluster = mocker.patch("skyactuator.clients.config.load_incluster_config")
    kube_config = mocker.patch("skyactuator.clients.config.load_kube_config")
    mocker.patch("skyactuator.clients.client.CoreV1Api")

    clients.get_core_v1_api()

    in_cluster.assert_called_once()
    kube_config.assert_not_called()


def test_core_v1_api_falls_back_to_kubeconfig(mocker):
    mocker.patch(
        "skyactuator.clients.config.load_incluster_config",
        side_effect=config.ConfigException("not in cluster"),
    )
    kube_config = mocker.patch("skyactuator.clients.config.load_kube_config")
    mocker.patch("skyactuator.clients.client.CoreV1Api")

    clients.get_core_v1_api()

    kube_config.assert_called_once_with()


def test_core_v1_api_explicit_kubeconfig(mocker):
    in_cluster = mocker.patch("skyactuator.clients.config.load_incluster_config")
    kube_config = mocker.patch("skyactuator.clients.config.load_kube_config")
    api = mocker.patch("skyactuator.clients.client.CoreV1Api")

    assert clients.get_core_v1_api("/tmp/kubeconfig") is api.return_value

    in_cluster.assert_not_called()
    kube_config.assert_called_once_with(config_file="/tmp/kubeconfig")
