# provisioner/errors.py


class ProvisionError(Exception):
    """Base exception for provisioning failures."""

    exit_code = 1


class InvalidInputError(ProvisionError):
    """Raised when an operator-supplied value cannot be used."""

    exit_code = 2


class KeyPairNotFoundError(ProvisionError):
    """Raised when an existing key pair was requested but EC2 has none by that name."""

    exit_code = 3


class SecurityGroupNotFoundError(ProvisionError):
    """Raised when an existing security group was requested but EC2 has none by that name."""

    exit_code = 3


class KeyMaterialMissingError(ProvisionError):
    """
    Raised when a key pair exists in EC2 but its private key is not on disk.

    EC2 only hands out key material once, so the key pair has to be deleted
    remotely (or the .pem restored) before it can be used again.
    """

    exit_code = 4


class NoMachineImageError(ProvisionError):
    """Raised when no available AMI matches the image filter."""

    exit_code = 5


class LaunchError(ProvisionError):
    """Raised when run_instances fails."""

    exit_code = 6


class KeyMaterialWriteError(ProvisionError):
    """Raised when a new private key could not be saved; the key pair is removed from EC2 again."""

    exit_code = 4


class InstanceNotReadyError(ProvisionError):
    """Raised when a launched instance did not reach the running state."""

    exit_code = 7

    def __init__(self, message, instance_ids=None):
        super().__init__(message)
        self.instance_ids = instance_ids or []
