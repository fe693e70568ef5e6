# provisioner/config_loader.py
import os
import yaml
from dataclasses import dataclass, fields
from pathlib import Path

RUNTIME_CONFIG_PATH = Path("config/runtime.yaml")

DEFAULT_REGION = "ap-south-1"
DEFAULT_INSTANCE_TYPE = "t2.micro"
# Canonical's Ubuntu 20.04 server images
DEFAULT_IMAGE_NAME_PATTERN = "ubuntu/images/hvm-ssd/ubuntu-focal-20.04-amd64-server-*"
DEFAULT_IMAGE_OWNER = "099720109477"
DEFAULT_ROOT_DEVICE_NAME = "/dev/sda1"
DEFAULT_VOLUME_TYPE = "gp2"
DEFAULT_SECURITY_GROUP_DESCRIPTION = "Security group for HTTP, HTTPS, and SSH access"


@dataclass
class LaunchConfig:
    region: str = DEFAULT_REGION
    profile: str | None = None
    instance_type: str = DEFAULT_INSTANCE_TYPE
    image_name_pattern: str = DEFAULT_IMAGE_NAME_PATTERN
    image_owner: str = DEFAULT_IMAGE_OWNER
    root_device_name: str = DEFAULT_ROOT_DEVICE_NAME
    volume_type: str = DEFAULT_VOLUME_TYPE
    key_dir: str = "."
    security_group_description: str = DEFAULT_SECURITY_GROUP_DESCRIPTION
    wait: bool = False


ENV_VARS = {
    "region": "AWS_REGION",
    "profile": "AWS_PROFILE",
    "instance_type": "INSTANCE_TYPE",
    "image_name_pattern": "IMAGE_NAME_PATTERN",
    "image_owner": "IMAGE_OWNER",
    "root_device_name": "ROOT_DEVICE_NAME",
    "volume_type": "VOLUME_TYPE",
    "key_dir": "KEY_DIR",
    "security_group_description": "SECURITY_GROUP_DESCRIPTION",
    "wait": "WAIT_FOR_RUNNING",
}


def _as_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes")


def load_launch_config(path=RUNTIME_CONFIG_PATH, overrides=None):
    """
    Loads launch configuration.
    Priority:
      1) overrides (CLI flags), ignoring None values
      2) Environment variables
      3) config/runtime.yaml (if present)
      4) LaunchConfig defaults
    """
    cfg = {}

    # Load from file if it exists
    path = Path(path)
    if path.exists():
        with open(path) as f:
            cfg = yaml.safe_load(f) or {}

    values = {}
    for field in fields(LaunchConfig):
        value = os.getenv(ENV_VARS[field.name]) or None
        if value is None:
            value = cfg.get(field.name)
        if overrides and overrides.get(field.name) is not None:
            value = overrides[field.name]
        if value is None:
            continue
        values[field.name] = _as_bool(value) if field.name == "wait" else str(value)

    return LaunchConfig(**values)
