from tenacity import stop_after_delay, wait_fixed

# Machine labels and annotations
CLUSTER_ID_LABEL = "machine.openshift.io/cluster-api-cluster"
MACHINE_ROLE_LABEL = "machine.openshift.io/cluster-api-machine-role"
MASTER_MACHINE_ROLE = "master"
OS_ID_LABEL = "machine.openshift.io/os-id"
WINDOWS_OS_ID = "Windows"

INSTANCE_STATE_ANNOTATION = "machine.openshift.io/instance-state"
INSTANCE_TYPE_LABEL = "machine.openshift.io/instance-type"
REGION_LABEL = "machine.openshift.io/region"
ZONE_LABEL = "machine.openshift.io/zone"
INTERRUPTIBLE_INSTANCE_LABEL = "machine.openshift.io/interruptible-instance"

# Bootstrap data
USER_DATA_SECRET_KEY = "userData"
USER_DATA_METADATA_KEY = "user-data"
WINDOWS_SCRIPT_METADATA_KEY = "sysprep-specialize-script-ps1"

# MachineCreated condition
MACHINE_CREATED_CONDITION = "MachineCreated"
MACHINE_CREATION_SUCCEEDED_REASON = "MachineCreationSucceeded"
MACHINE_CREATION_SUCCEEDED_MESSAGE = "Machine successfully created"
MACHINE_CREATION_FAILED_REASON = "MachineCreationFailed"
MACHINE_VALIDATION_FAILED_REASON = "MachineValidationFailed"

# Seconds the caller should wait before re-invoking a pending operation
REQUEUE_AFTER_SECONDS = 20

RUNNING_INSTANCE_STATE = "RUNNING"
COMPUTE_API_BASE = "https://www.googleapis.com/compute/v1"

# Control plane instance groups expose the API server port
CONTROL_PLANE_NAMED_PORT = ("https", 6443)

# Preemption metadata endpoint
TERMINATION_ENDPOINT_URL = (
    "http://169.254.169.254/computeMetadata/v1/instance/preempted"
)
METADATA_FLAVOR_HEADER = {"Metadata-Flavor": "Google"}
TERMINATING_CONDITION_TYPE = "Terminating"
TERMINATION_REQUESTED_REASON = "TerminationRequested"
TERMINATION_REQUESTED_MESSAGE = (
    "The cloud provider has marked this instance for termination"
)
DEFAULT_POLL_INTERVAL_SECONDS = 5.0

# Node marking must finish within this ceiling, API calls included
MARK_NODE_TIMEOUT_SECONDS = 30.0

# Shared node-marking retry configuration
# usage: Retrying(**MARK_NODE_RETRY_CONFIG)
MARK_NODE_RETRY_CONFIG = {
    "stop": stop_after_delay(MARK_NODE_TIMEOUT_SECONDS),
    "wait": wait_fixed(1),
}
