# provisioner/main.py
import argparse
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError

from provisioner.config_loader import RUNTIME_CONFIG_PATH, LaunchConfig, load_launch_config
from provisioner.errors import InstanceNotReadyError, InvalidInputError, ProvisionError
from provisioner.instance_manager import LaunchRequest, LaunchResult, launch_instance
from provisioner.key_pairs import KeyPairManager
from provisioner.security_groups import SecurityGroupManager
from provisioner.utils import load_logging_config, make_ec2_client

log = logging.getLogger("provisioner.main")

EXIT_OK = 0
EXIT_PROVIDER_ERROR = 1
EXIT_INTERRUPTED = 130


def parse_volume_size(text: str) -> int:
    try:
        size = int(text.strip())
    except (AttributeError, ValueError):
        raise InvalidInputError(f"Volume size must be a whole number of GB, got {text!r}")
    if size <= 0:
        raise InvalidInputError(f"Volume size must be positive, got {size}")
    return size


def ask_yes_no(ask, prompt: str) -> bool:
    return ask(prompt).strip().lower() in ("yes", "y")


def ask_required(ask, prompt: str, what: str) -> str:
    value = ask(prompt).strip()
    if not value:
        raise InvalidInputError(f"{what} must not be empty")
    return value


def collect_and_launch(ec2, config: LaunchConfig, ask=input) -> LaunchResult:
    """
    Prompt for everything a launch needs, ensuring the key pair and
    security group along the way, then launch the instance.
    """
    instance_name = ask_required(ask, "Enter the EC2 instance name: ", "Instance name")

    key_pairs = KeyPairManager(ec2, key_dir=config.key_dir)
    if ask_yes_no(ask, "Do you want to use an existing key pair? (yes/no): "):
        key_name = key_pairs.require(ask_required(ask, "Enter the existing key pair name: ", "Key pair name"))
    else:
        key_name = key_pairs.ensure(ask_required(ask, "Enter the new key pair name: ", "Key pair name"))

    security_groups = SecurityGroupManager(ec2, description=config.security_group_description)
    if ask_yes_no(ask, "Do you want to use an existing security group? (yes/no): "):
        group_name = ask_required(ask, "Enter the existing security group name: ", "Security group name")
        security_group_id = security_groups.require(group_name)
    else:
        group_name = ask_required(ask, "Enter the new security group name: ", "Security group name")
        security_group_id = security_groups.ensure(group_name)

    volume_size = parse_volume_size(ask("Enter the volume size (in GB): "))

    log.info(
        "Instance Name: %s | Key Pair: %s | Security Group: %s | Volume: %sGB",
        instance_name,
        key_name,
        security_group_id,
        volume_size,
    )

    request = LaunchRequest(
        instance_name=instance_name,
        key_name=key_name,
        security_group_id=security_group_id,
        volume_size=volume_size,
    )
    return launch_instance(ec2, config, request, wait=config.wait)


def report(result: LaunchResult):
    for instance_id in result.instance_ids:
        print(f"✅ EC2 instance created: {instance_id}")
    if result.public_ip or result.public_dns:
        print(f"Public IP: {result.public_ip}")
        print(f"Public DNS: {result.public_dns}")


def run(config: LaunchConfig, ask=input, ec2=None) -> int:
    """
    Run the interactive launch and map the outcome to an exit status.
    """
    try:
        if ec2 is None:
            ec2 = make_ec2_client(config.region, config.profile)
        result = collect_and_launch(ec2, config, ask=ask)
    except InstanceNotReadyError as e:
        log.error("%s", e)
        report(LaunchResult(instance_ids=e.instance_ids))
        return e.exit_code
    except ProvisionError as e:
        log.error("%s", e)
        return e.exit_code
    except (ClientError, BotoCoreError) as e:
        log.error("AWS request failed: %s", e)
        return EXIT_PROVIDER_ERROR
    except (KeyboardInterrupt, EOFError):
        log.error("Aborted by operator")
        return EXIT_INTERRUPTED

    report(result)
    return EXIT_OK


def main(argv=None):
    parser = argparse.ArgumentParser(description="Interactively launch a single EC2 instance.")
    parser.add_argument("--region", help="AWS region (default from config/env, else ap-south-1)")
    parser.add_argument("--profile", help="Optional AWS CLI profile")
    parser.add_argument("--instance-type", help="Instance type (default t2.micro)")
    parser.add_argument("--key-dir", help="Directory where new private keys are saved (default .)")
    parser.add_argument("--wait", action="store_true", default=None, help="Wait for the instance to be running")
    parser.add_argument("--config", default=str(RUNTIME_CONFIG_PATH), help="Runtime config path")
    parser.add_argument("--logging-config", default="config/logging.yaml", help="Logging config path")
    args = parser.parse_args(argv)

    load_logging_config(args.logging_config)

    config = load_launch_config(
        args.config,
        overrides={
            "region": args.region,
            "profile": args.profile,
            "instance_type": args.instance_type,
            "key_dir": args.key_dir,
            "wait": args.wait,
        },
    )
    log.info("Launching in region %s as %s", config.region, config.instance_type)
    return run(config)


if __name__ == "__main__":
    sys.exit(main())
