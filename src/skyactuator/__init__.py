"""GCP machine actuator and preemption termination handler."""

import warnings
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("skyactuator")
except PackageNotFoundError:
    # Running from a source checkout
    __version__ = "0.0.0+unknown"

# The compute and auth SDKs warn about interpreter deprecation on import;
# the handler runs unattended and those warnings only fill its logs.
for _module in ("google.api_core", "google.auth", "google.cloud"):
    warnings.filterwarnings("ignore", category=FutureWarning, module=_module)
del _module
