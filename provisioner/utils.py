# provisioner/utils.py
import logging
import logging.config

import boto3
import yaml
from botocore.exceptions import ClientError


def make_ec2_client(region: str, profile: str | None = None):
    """
    Build the EC2 client shared by every provisioning step.
    """
    session = boto3.Session(profile_name=profile, region_name=region) if profile else boto3.Session(region_name=region)
    return session.client("ec2", region_name=region)


def error_code(exc: ClientError) -> str | None:
    return exc.response.get("Error", {}).get("Code")


def load_logging_config(path="config/logging.yaml"):
    try:
        with open(path) as f:
            cfg = yaml.safe_load(f)
        logging.config.dictConfig(cfg)
    except (OSError, yaml.YAMLError, TypeError, ValueError):
        logging.basicConfig(
            level=logging.INFO,
            format='{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","msg":"%(message)s"}',
        )
