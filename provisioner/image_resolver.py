# provisioner/image_resolver.py
import logging

from provisioner.config_loader import LaunchConfig
from provisioner.errors import NoMachineImageError

log = logging.getLogger(__name__)


def find_latest_image(ec2, config: LaunchConfig) -> str:
    """
    Return the ImageId of the newest available AMI matching the configured
    name pattern and owner.
    """
    resp = ec2.describe_images(
        Filters=[
            {"Name": "name", "Values": [config.image_name_pattern]},
            {"Name": "state", "Values": ["available"]},
        ],
        Owners=[config.image_owner],
    )
    images = resp.get("Images", [])
    if not images:
        raise NoMachineImageError(
            f"No machine image found matching {config.image_name_pattern} (owner {config.image_owner})"
        )

    # CreationDate is ISO-8601, so string order is time order
    latest = max(images, key=lambda image: image.get("CreationDate", ""))
    log.info("Resolved image %s (%s, created %s)", latest["ImageId"], latest.get("Name"), latest.get("CreationDate"))
    return latest["ImageId"]
