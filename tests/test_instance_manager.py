import unittest
from unittest.mock import MagicMock

from botocore.exceptions import EndpointConnectionError, WaiterError

from helpers import client_error
from provisioner.config_loader import LaunchConfig
from provisioner.errors import InstanceNotReadyError, InvalidInputError, LaunchError, NoMachineImageError
from provisioner.instance_manager import LaunchRequest, launch_instance


class TestLaunchInstance(unittest.TestCase):
    def setUp(self):
        self.ec2 = MagicMock()
        self.ec2.describe_images.return_value = {
            "Images": [
                {"ImageId": "ami-a", "CreationDate": "2024-01-01T00:00:00.000Z"},
                {"ImageId": "ami-b", "CreationDate": "2024-03-01T00:00:00.000Z"},
            ]
        }
        self.ec2.run_instances.return_value = {"Instances": [{"InstanceId": "i-0abc"}]}
        self.config = LaunchConfig()
        self.request = LaunchRequest("web1", "web1-key", "sg-123", 20)

    def test_run_instances_request(self):
        """Single instance from the latest image with the requested volume and tag"""
        result = launch_instance(self.ec2, self.config, self.request)

        self.assertEqual(result.instance_ids, ["i-0abc"])
        self.ec2.run_instances.assert_called_once()
        kwargs = self.ec2.run_instances.call_args.kwargs
        self.assertEqual(kwargs["ImageId"], "ami-b")
        self.assertEqual(kwargs["InstanceType"], "t2.micro")
        self.assertEqual(kwargs["KeyName"], "web1-key")
        self.assertEqual(kwargs["MinCount"], 1)
        self.assertEqual(kwargs["MaxCount"], 1)
        self.assertEqual(kwargs["SecurityGroupIds"], ["sg-123"])
        self.assertEqual(
            kwargs["BlockDeviceMappings"],
            [{"DeviceName": "/dev/sda1", "Ebs": {"VolumeSize": 20, "VolumeType": "gp2"}}],
        )
        self.assertEqual(
            kwargs["TagSpecifications"],
            [{"ResourceType": "instance", "Tags": [{"Key": "Name", "Value": "web1"}]}],
        )
        self.ec2.get_waiter.assert_not_called()

    def test_configured_sizing(self):
        config = LaunchConfig(instance_type="t3.small", root_device_name="/dev/xvda", volume_type="gp3")
        launch_instance(self.ec2, config, self.request)

        kwargs = self.ec2.run_instances.call_args.kwargs
        self.assertEqual(kwargs["InstanceType"], "t3.small")
        self.assertEqual(kwargs["BlockDeviceMappings"][0]["DeviceName"], "/dev/xvda")
        self.assertEqual(kwargs["BlockDeviceMappings"][0]["Ebs"]["VolumeType"], "gp3")

    def test_invalid_volume_size(self):
        for size in (0, -5, "20", None, True):
            with self.subTest(size=size):
                request = LaunchRequest("web1", "web1-key", "sg-123", size)
                with self.assertRaises(InvalidInputError):
                    launch_instance(self.ec2, self.config, request)
        self.ec2.run_instances.assert_not_called()

    def test_run_instances_failure(self):
        """Provider errors surface as LaunchError instead of being swallowed"""
        self.ec2.run_instances.side_effect = client_error("InsufficientInstanceCapacity", "RunInstances")
        with self.assertRaises(LaunchError):
            launch_instance(self.ec2, self.config, self.request)

    def test_run_instances_connection_failure(self):
        self.ec2.run_instances.side_effect = EndpointConnectionError(endpoint_url="https://ec2.ap-south-1.amazonaws.com")
        with self.assertRaises(LaunchError):
            launch_instance(self.ec2, self.config, self.request)

    def test_wait_failure_carries_instance_ids(self):
        """Instance launched but never running still reports its id"""
        self.ec2.get_waiter.return_value.wait.side_effect = WaiterError(
            name="InstanceRunning", reason="Max attempts exceeded", last_response={}
        )
        with self.assertRaises(InstanceNotReadyError) as ctx:
            launch_instance(self.ec2, self.config, self.request, wait=True)

        self.assertEqual(ctx.exception.instance_ids, ["i-0abc"])
        self.assertIn("i-0abc", str(ctx.exception))
        self.ec2.describe_instances.assert_not_called()

    def test_resolver_failure_propagates(self):
        self.ec2.describe_images.return_value = {"Images": []}
        with self.assertRaises(NoMachineImageError):
            launch_instance(self.ec2, self.config, self.request)
        self.ec2.run_instances.assert_not_called()

    def test_wait_fills_public_address(self):
        self.ec2.describe_instances.return_value = {
            "Reservations": [
                {"Instances": [{"InstanceId": "i-0abc", "PublicIpAddress": "13.1.2.3", "PublicDnsName": "ec2-13-1-2-3"}]}
            ]
        }
        result = launch_instance(self.ec2, self.config, self.request, wait=True)

        self.ec2.get_waiter.assert_called_once_with("instance_running")
        self.ec2.get_waiter.return_value.wait.assert_called_once_with(InstanceIds=["i-0abc"])
        self.assertEqual(result.public_ip, "13.1.2.3")
        self.assertEqual(result.public_dns, "ec2-13-1-2-3")


if __name__ == '__main__':
    unittest.main()
