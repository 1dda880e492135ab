"""
Translates a machine's provider spec into a Compute Engine instance resource.

Everything here is a pure mapping: no API calls, no secrets. The user data blob
is resolved beforehand and passed in.
"""

from google.cloud import compute_v1

from ..core import CLUSTER_ID_LABEL
from ..schemas.machine import (
    GCPDisk,
    GCPGPUConfig,
    GCPKMSKeyReference,
    GCPMachineProviderSpec,
    GCPMetadata,
    GCPNetworkInterface,
    Machine,
)
from .userdata import user_data_metadata_key


def network_resource_name(project: str, network: str) -> str:
    return f"projects/{project}/global/networks/{network}"


def subnetwork_resource_name(project: str, region: str, network: str) -> str:
    return f"projects/{project}/regions/{region}/networks/{network}"


def accelerator_type_name(zone: str, accelerator_type: str) -> str:
    return f"zones/{zone}/acceleratorTypes/{accelerator_type}"


def kms_key_name(key: GCPKMSKeyReference, default_project: str) -> str:
    project = key.project_id or default_project
    return (
        f"projects/{project}/locations/{key.location}"
        f"/keyRings/{key.key_ring}/cryptoKeys/{key.name}"
    )


def build_network_interfaces(
    interfaces: list[GCPNetworkInterface], project_id: str, region: str
) -> list[compute_v1.NetworkInterface]:
    results = []
    for nic in interfaces:
        # Shared VPC: the interface may live in another project
        project = nic.project_id or project_id
        compute_nic = compute_v1.NetworkInterface()
        if nic.network:
            compute_nic.network = network_resource_name(project, nic.network)
        if nic.network and nic.subnetwork:
            compute_nic.subnetwork = subnetwork_resource_name(
                project, region, nic.network
            )
        if nic.public_ip:
            compute_nic.access_configs = [
                compute_v1.AccessConfig(name="External NAT", type_="ONE_TO_ONE_NAT")
            ]
        results.append(compute_nic)
    return results


def build_disks(
    disks: list[GCPDisk], project_id: str, zone: str
) -> list[compute_v1.AttachedDisk]:
    results = []
    for disk in disks:
        source_image = disk.image
        if source_image and "/" not in source_image:
            source_image = f"projects/{project_id}/global/images/{source_image}"

        attached = compute_v1.AttachedDisk(
            auto_delete=disk.auto_delete,
            boot=disk.boot,
            initialize_params=compute_v1.AttachedDiskInitializeParams(
                disk_size_gb=disk.size_gb,
                disk_type=f"zones/{zone}/diskTypes/{disk.type}",
                source_image=source_image,
                labels=disk.labels,
            ),
        )

        if disk.encryption_key is not None and disk.encryption_key.kms_key is not None:
            encryption = compute_v1.CustomerEncryptionKey(
                kms_key_name=kms_key_name(disk.encryption_key.kms_key, project_id)
            )
            if disk.encryption_key.kms_key_service_account:
                encryption.kms_key_service_account = (
                    disk.encryption_key.kms_key_service_account
                )
            attached.disk_encryption_key = encryption

        results.append(attached)
    return results


def build_guest_accelerators(
    gpus: list[GCPGPUConfig], zone: str
) -> list[compute_v1.AcceleratorConfig]:
    return [
        compute_v1.AcceleratorConfig(
            accelerator_type=accelerator_type_name(zone, gpu.type),
            accelerator_count=gpu.count,
        )
        for gpu in gpus
    ]


def build_metadata_items(
    metadata: list[GCPMetadata], user_data: str, user_data_key: str
) -> list[compute_v1.Items]:
    """
    Explicit spec entries first. The user data blob is only added when no
    explicit entry already claims its key.
    """
    items = [compute_v1.Items(key=m.key, value=m.value) for m in metadata]
    explicit_keys = {m.key for m in metadata}
    if user_data and user_data_key not in explicit_keys:
        items.append(compute_v1.Items(key=user_data_key, value=user_data))
    return items


def build_scheduling(spec: GCPMachineProviderSpec) -> compute_v1.Scheduling:
    # Preemptible and GPU instances cannot live-migrate
    if spec.preemptible or spec.gpus:
        on_host_maintenance = "TERMINATE"
    else:
        on_host_maintenance = "MIGRATE"
    return compute_v1.Scheduling(
        preemptible=spec.preemptible,
        automatic_restart=not spec.preemptible,
        on_host_maintenance=on_host_maintenance,
    )


def build_instance(
    machine: Machine, project_id: str, user_data: str = ""
) -> compute_v1.Instance:
    spec = machine.spec.provider_spec
    cluster_id = machine.metadata.labels.get(CLUSTER_ID_LABEL, "")

    labels = dict(spec.labels)
    if cluster_id:
        labels[f"kubernetes-io-cluster-{cluster_id}"] = "owned"

    return compute_v1.Instance(
        name=machine.metadata.name,
        machine_type=f"zones/{spec.zone}/machineTypes/{spec.machine_type}",
        can_ip_forward=spec.can_ip_forward,
        deletion_protection=spec.deletion_protection,
        disks=build_disks(spec.disks, project_id, spec.zone),
        network_interfaces=build_network_interfaces(
            spec.network_interfaces, project_id, spec.region
        ),
        guest_accelerators=build_guest_accelerators(spec.gpus, spec.zone),
        service_accounts=[
            compute_v1.ServiceAccount(email=sa.email, scopes=sa.scopes)
            for sa in spec.service_accounts
        ],
        metadata=compute_v1.Metadata(
            items=build_metadata_items(
                spec.metadata,
                user_data,
                user_data_metadata_key(machine.metadata.labels),
            )
        ),
        tags=compute_v1.Tags(items=spec.tags),
        labels=labels,
        scheduling=build_scheduling(spec),
    )
