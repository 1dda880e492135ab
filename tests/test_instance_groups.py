import pytest

from skyactuator.errors import ActuatorError, ComputeError, ComputeErrorKind, FetchError
from skyactuator.machine.instancegroups import (
    ControlPlaneGroupRegistrar,
    control_plane_group_name,
)

LINK = (
    "https://www.googleapis.com/compute/v1/projects/project1/zones/zone1"
    "/instances/instance1"
)


def _registrar(gateway, is_control_plane=True):
    return ControlPlaneGroupRegistrar(
        gateway,
        "project1",
        "zone1",
        "CLUSTERID",
        LINK,
        is_control_plane=is_control_plane,
        network="projects/project1/global/networks/net",
    )


def test_group_name():
    assert control_plane_group_name("CLUSTERID", "zone1") == "CLUSTERID-master-zone1"


def test_register_already_member(mocker):
    gateway = mocker.Mock()
    gateway.list_group_instances.return_value = [LINK]

    _registrar(gateway).register()

    gateway.list_group_instances.assert_called_once_with(
        "project1", "zone1", "CLUSTERID-master-zone1"
    )
    gateway.add_group_instances.assert_not_called()


def test_register_adds_instance(mocker):
    gateway = mocker.Mock()
    gateway.list_group_instances.return_value = []

    _registrar(gateway).register()

    gateway.add_group_instances.assert_called_once_with(
        "project1", "zone1", "CLUSTERID-master-zone1", [LINK]
    )


def test_register_missing_group(mocker):
    gateway = mocker.Mock()
    gateway.list_group_instances.side_effect = ComputeError(
        ComputeErrorKind.NOT_FOUND,
        "The resource was not found",
        code=404,
        text="instanceGroupsListInstances request failed: 404 The resource was not found",
    )

    with pytest.raises(FetchError) as excinfo:
        _registrar(gateway).register()

    assert excinfo.value.missing
    assert excinfo.value.resource == "CLUSTERID-master-zone1"
    assert str(excinfo.value).startswith(
        "failed to fetch running instances in instance group CLUSTERID-master-zone1"
    )
    gateway.add_group_instances.assert_not_called()


def test_register_list_error_not_missing(mocker):
    gateway = mocker.Mock()
    gateway.list_group_instances.side_effect = ComputeError(
        ComputeErrorKind.TRANSIENT, "timeout"
    )

    with pytest.raises(FetchError) as excinfo:
        _registrar(gateway).register()

    assert not excinfo.value.missing


def test_register_add_error(mocker):
    gateway = mocker.Mock()
    gateway.list_group_instances.return_value = []
    gateway.add_group_instances.side_effect = ComputeError(
        ComputeErrorKind.TRANSIENT, "a GCP error"
    )

    with pytest.raises(ActuatorError) as excinfo:
        _registrar(gateway).register()

    assert str(excinfo.value) == "InstanceGroupsAddInstances request failed: a GCP error"


def test_unregister_not_member(mocker):
    gateway = mocker.Mock()
    gateway.list_group_instances.return_value = ["https://example.com/other"]

    _registrar(gateway).unregister()

    gateway.remove_group_instances.assert_not_called()


def test_unregister_removes_instance(mocker):
    gateway = mocker.Mock()
    gateway.list_group_instances.return_value = [LINK]

    _registrar(gateway).unregister()

    gateway.remove_group_instances.assert_called_once_with(
        "project1", "zone1", "CLUSTERID-master-zone1", [LINK]
    )


def test_unregister_remove_error(mocker):
    gateway = mocker.Mock()
    gateway.list_group_instances.return_value = [LINK]
    gateway.remove_group_instances.side_effect = ComputeError(
        ComputeErrorKind.TRANSIENT, "a GCP error"
    )

    with pytest.raises(ActuatorError) as excinfo:
        _registrar(gateway).unregister()

    assert str(excinfo.value) == (
        "InstanceGroupsRemoveInstances request failed: a GCP error"
    )


def test_non_control_plane_is_left_alone(mocker):
    gateway = mocker.Mock()
    registrar = _registrar(gateway, is_control_plane=False)

    registrar.register()
    registrar.unregister()

    gateway.list_group_instances.assert_not_called()
    gateway.add_group_instances.assert_not_called()
    gateway.remove_group_instances.assert_not_called()


def test_register_new_instance_group(mocker):
    gateway = mocker.Mock()

    _registrar(gateway).register_new_instance_group()

    gateway.insert_group.assert_called_once_with(
        "project1",
        "zone1",
        "CLUSTERID-master-zone1",
        network="projects/project1/global/networks/net",
    )


def test_register_new_instance_group_error(mocker):
    gateway = mocker.Mock()
    gateway.insert_group.side_effect = ComputeError(
        ComputeErrorKind.TRANSIENT, "failed to register new instanceGroup"
    )

    with pytest.raises(ActuatorError) as excinfo:
        _registrar(gateway).register_new_instance_group()

    assert str(excinfo.value) == (
        "instanceGroupInsert request failed: failed to register new instanceGroup"
    )
