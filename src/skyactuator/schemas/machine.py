from datetime import datetime

from pydantic import BaseModel, Field


class ObjectMeta(BaseModel):
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class SecretReference(BaseModel):
    name: str


class GCPKMSKeyReference(BaseModel):
    name: str
    key_ring: str
    project_id: str = Field(
        default="", description="Defaults to the provider spec project"
    )
    location: str


class GCPEncryptionKeyReference(BaseModel):
    kms_key: GCPKMSKeyReference | None = None
    kms_key_service_account: str = ""


class GCPDisk(BaseModel):
    auto_delete: bool = True
    boot: bool = False
    size_gb: int = 0
    type: str = Field(default="pd-standard", description="e.g., pd-ssd")
    image: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    encryption_key: GCPEncryptionKeyReference | None = None


class GCPNetworkInterface(BaseModel):
    network: str = ""
    subnetwork: str = ""
    project_id: str = Field(
        default="", description="Shared VPC host project, if any"
    )
    public_ip: bool = False


class GCPMetadata(BaseModel):
    key: str
    value: str | None = None


class GCPServiceAccount(BaseModel):
    email: str
    scopes: list[str] = Field(default_factory=list)


class GCPGPUConfig(BaseModel):
    type: str = Field(description="e.g., nvidia-tesla-t4")
    count: int


class GCPMachineProviderSpec(BaseModel):
    machine_type: str = ""
    region: str = ""
    zone: str = ""
    project_id: str = ""
    can_ip_forward: bool = False
    deletion_protection: bool = False
    disks: list[GCPDisk] = Field(default_factory=list)
    network_interfaces: list[GCPNetworkInterface] = Field(default_factory=list)
    service_accounts: list[GCPServiceAccount] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    metadata: list[GCPMetadata] = Field(default_factory=list)
    target_pools: list[str] | None = None
    user_data_secret: SecretReference | None = None
    preemptible: bool = False
    gpus: list[GCPGPUConfig] = Field(default_factory=list)


class Condition(BaseModel):
    type: str
    status: bool
    reason: str = ""
    message: str = ""
    last_transition_time: datetime | None = None


class GCPMachineProviderStatus(BaseModel):
    instance_id: str | None = None
    instance_state: str | None = None
    conditions: list[Condition] = Field(default_factory=list)


class NodeAddress(BaseModel):
    type: str = Field(description="InternalIP or ExternalIP")
    address: str


class MachineSpec(BaseModel):
    provider_id: str | None = None
    labels: dict[str, str] = Field(
        default_factory=dict, description="Labels propagated to the Node"
    )
    provider_spec: GCPMachineProviderSpec = Field(
        default_factory=GCPMachineProviderSpec
    )


class MachineStatus(BaseModel):
    addresses: list[NodeAddress] = Field(default_factory=list)
    provider_status: GCPMachineProviderStatus = Field(
        default_factory=GCPMachineProviderStatus
    )


class Machine(BaseModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: MachineSpec = Field(default_factory=MachineSpec)
    status: MachineStatus = Field(default_factory=MachineStatus)
