# provisioner/security_groups.py
import logging

from botocore.exceptions import BotoCoreError, ClientError

from provisioner.config_loader import DEFAULT_SECURITY_GROUP_DESCRIPTION
from provisioner.errors import SecurityGroupNotFoundError
from provisioner.utils import error_code

log = logging.getLogger(__name__)

INGRESS_PORTS = (22, 80, 443)
OPEN_CIDR = "0.0.0.0/0"


def ingress_rules():
    return [
        {
            "IpProtocol": "tcp",
            "FromPort": port,
            "ToPort": port,
            "IpRanges": [{"CidrIp": OPEN_CIDR}],
        }
        for port in INGRESS_PORTS
    ]


class SecurityGroupManager:
    def __init__(self, ec2, description=DEFAULT_SECURITY_GROUP_DESCRIPTION):
        self.ec2 = ec2
        self.description = description

    def exists(self, name: str) -> str | None:
        """
        Return the GroupId for a security group name, or None if there is none.
        """
        try:
            resp = self.ec2.describe_security_groups(GroupNames=[name])
        except ClientError as e:
            if error_code(e) == "InvalidGroup.NotFound":
                return None
            raise
        groups = resp.get("SecurityGroups", [])
        return groups[0]["GroupId"] if groups else None

    def ensure(self, name: str) -> str:
        existing_id = self.exists(name)
        if existing_id:
            log.info("Security group %s already exists (%s)", name, existing_id)
            return existing_id

        resp = self.ec2.create_security_group(GroupName=name, Description=self.description)
        group_id = resp["GroupId"]

        try:
            self.ec2.authorize_security_group_ingress(GroupId=group_id, IpPermissions=ingress_rules())
        except ClientError:
            log.error("Authorizing ingress on %s failed; deleting the new group", group_id)
            self._delete_quietly(group_id)
            raise

        log.info("Security group %s created (%s) and rules added", name, group_id)
        return group_id

    def require(self, name: str) -> str:
        group_id = self.exists(name)
        if not group_id:
            raise SecurityGroupNotFoundError(f"Security group not found: {name}")
        return group_id

    def _delete_quietly(self, group_id: str):
        try:
            self.ec2.delete_security_group(GroupId=group_id)
        except (ClientError, BotoCoreError) as e:
            log.error("Could not delete security group %s: %s", group_id, e)
