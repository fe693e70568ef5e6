# provisioner/key_pairs.py
import logging
import os
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from provisioner.errors import KeyMaterialMissingError, KeyMaterialWriteError, KeyPairNotFoundError
from provisioner.utils import error_code

log = logging.getLogger(__name__)

KEY_FILE_MODE = 0o400


class KeyPairManager:
    """
    Ensures an EC2 key pair exists and that its private key is saved locally
    as <key_dir>/<name>.pem.
    """

    def __init__(self, ec2, key_dir="."):
        self.ec2 = ec2
        self.key_dir = Path(key_dir)

    def key_path(self, name: str) -> Path:
        return self.key_dir / f"{name}.pem"

    def exists(self, name: str) -> bool:
        try:
            self.ec2.describe_key_pairs(KeyNames=[name])
            return True
        except ClientError as e:
            if error_code(e) == "InvalidKeyPair.NotFound":
                return False
            raise

    def ensure(self, name: str) -> str:
        """
        Reuse the key pair if it exists remotely and locally, otherwise
        create it and write the private key to disk.
        """
        path = self.key_path(name)
        if self.exists(name):
            if path.exists():
                log.info("Key pair %s already exists (%s)", name, path)
                return name
            raise KeyMaterialMissingError(
                f"Key pair {name} exists in EC2 but {path} is missing; "
                f"delete the remote key pair or restore the file"
            )

        resp = self.ec2.create_key_pair(KeyName=name)
        key_material = resp.get("KeyMaterial")
        if key_material:
            try:
                self._write_key_material(path, key_material)
            except OSError as e:
                log.error("Saving %s failed; deleting key pair %s", path, name)
                self._delete_quietly(name)
                raise KeyMaterialWriteError(f"Could not save private key for {name} to {path}: {e}") from e
            log.info("Key pair created and saved as %s", path)
        return resp.get("KeyName", name)

    def require(self, name: str) -> str:
        if not self.exists(name):
            raise KeyPairNotFoundError(f"Key pair {name} not found")
        if not self.key_path(name).exists():
            log.warning("Key pair %s exists but %s is not present locally", name, self.key_path(name))
        return name

    def _write_key_material(self, path: Path, key_material: str):
        self.key_dir.mkdir(parents=True, exist_ok=True)
        if path.exists():
            # Left over from a key pair that was deleted in EC2
            log.warning("Replacing stale key file %s", path)
            path.unlink()
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, KEY_FILE_MODE)
        with os.fdopen(fd, "w") as f:
            f.write(key_material)

    def _delete_quietly(self, name: str):
        try:
            self.ec2.delete_key_pair(KeyName=name)
        except (ClientError, BotoCoreError) as e:
            log.error("Could not delete key pair %s: %s", name, e)
