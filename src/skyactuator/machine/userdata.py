from typing import Any

from ..core import (
    OS_ID_LABEL,
    USER_DATA_METADATA_KEY,
    USER_DATA_SECRET_KEY,
    WINDOWS_OS_ID,
    WINDOWS_SCRIPT_METADATA_KEY,
)
from ..errors import InvalidMachineConfiguration
from ..schemas.machine import GCPMachineProviderSpec


def user_data_metadata_key(labels: dict[str, str]) -> str:
    """Windows machines read their bootstrap script from a dedicated key."""
    if labels.get(OS_ID_LABEL) == WINDOWS_OS_ID:
        return WINDOWS_SCRIPT_METADATA_KEY
    return USER_DATA_METADATA_KEY


class UserDataResolver:
    def __init__(self, secret_store: Any):
        self.secret_store = secret_store

    def resolve(self, spec: GCPMachineProviderSpec, namespace: str) -> str:
        """
        Fetches the bootstrap blob from the user data secret, if one is set.
        Raises InvalidMachineConfiguration when the secret or its key is missing.
        """
        if spec.user_data_secret is None:
            return ""

        name = spec.user_data_secret.name
        data = self.secret_store.get_secret(name, namespace)
        if data is None:
            raise InvalidMachineConfiguration(
                f"error getting user data secret {name} in namespace "
                f"{namespace}: not found"
            )

        if USER_DATA_SECRET_KEY not in data:
            raise InvalidMachineConfiguration(
                f"secret {namespace}/{name} does not have "
                f'"{USER_DATA_SECRET_KEY}" field set. '
                "Thus, no user data applied when creating an instance"
            )

        return data[USER_DATA_SECRET_KEY].decode("utf-8")
