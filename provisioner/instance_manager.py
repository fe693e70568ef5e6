# provisioner/instance_manager.py
import logging
from dataclasses import dataclass, field

from botocore.exceptions import BotoCoreError, ClientError

from provisioner.config_loader import LaunchConfig
from provisioner.errors import InstanceNotReadyError, InvalidInputError, LaunchError
from provisioner.image_resolver import find_latest_image

log = logging.getLogger(__name__)


@dataclass
class LaunchRequest:
    instance_name: str
    key_name: str
    security_group_id: str
    volume_size: int


@dataclass
class LaunchResult:
    instance_ids: list[str]
    instances: list[dict] = field(default_factory=list)
    public_ip: str | None = None
    public_dns: str | None = None


def build_launch_spec(config: LaunchConfig, request: LaunchRequest, image_id: str) -> dict:
    return {
        "ImageId": image_id,
        "InstanceType": config.instance_type,
        "KeyName": request.key_name,
        "SecurityGroupIds": [request.security_group_id],
        "BlockDeviceMappings": [
            {
                "DeviceName": config.root_device_name,
                "Ebs": {
                    "VolumeSize": request.volume_size,
                    "VolumeType": config.volume_type,
                },
            }
        ],
        "TagSpecifications": [
            {
                "ResourceType": "instance",
                "Tags": [{"Key": "Name", "Value": request.instance_name}],
            }
        ],
    }


def launch_instance(ec2, config: LaunchConfig, request: LaunchRequest, wait: bool = False) -> LaunchResult:
    """
    Launch one instance from the latest matching image.

    With wait=True, blocks until the instance is running and fills in its
    public address.
    """
    size = request.volume_size
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise InvalidInputError(f"Volume size must be a positive integer, got {size!r}")

    image_id = find_latest_image(ec2, config)
    launch_spec = build_launch_spec(config, request, image_id)

    try:
        resp = ec2.run_instances(MinCount=1, MaxCount=1, **launch_spec)
    except (ClientError, BotoCoreError) as e:
        raise LaunchError(f"Error creating instance: {e}") from e

    instances = resp.get("Instances", [])
    result = LaunchResult(
        instance_ids=[inst["InstanceId"] for inst in instances],
        instances=instances,
    )
    log.info("EC2 instance created: %s", result.instance_ids)

    if wait and result.instance_ids:
        instance_id = result.instance_ids[0]
        log.info("Waiting for %s to reach running state...", instance_id)
        try:
            waiter = ec2.get_waiter("instance_running")
            waiter.wait(InstanceIds=[instance_id])
            desc = ec2.describe_instances(InstanceIds=[instance_id])
        except (ClientError, BotoCoreError) as e:
            raise InstanceNotReadyError(
                f"Instance {instance_id} was launched but is not running yet: {e}",
                instance_ids=result.instance_ids,
            ) from e
        inst = desc["Reservations"][0]["Instances"][0]
        result.public_ip = inst.get("PublicIpAddress")
        result.public_dns = inst.get("PublicDnsName")

    return result
