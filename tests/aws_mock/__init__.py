"""AWS API mocks for integration testing.

In-memory stand-ins for the boto3 EC2 and Route 53 clients, so the
reconciler can be exercised end to end without AWS connectivity.

Key Features:
- In-memory instances, hosted zones and record sets
- DescribeInstances tag-key filtering
- Atomic change batches with Route 53's exact-match DELETE semantics
- Error injection (botocore ClientError) per operation
- Call recording for assertions

Usage:
    from aws_mock import MockEC2Client, MockRoute53Client

    ec2 = MockEC2Client()
    ec2.add_instance({"InstanceId": "i-1", "Tags": [{"Key": "HostedZone", "Value": "Z1"}]})
    route53 = MockRoute53Client()
    route53.add_zone("Z1", "example.org.")

    reconciler = Reconciler(InstanceDirectory(ec2), ZoneStore(route53))
    reconciler.reconcile(event)

    assert route53.call_count("change_resource_record_sets") == 1
"""

from .base import client_error
from .ec2 import MockEC2Client
from .route53 import MockRoute53Client

__all__ = [
    "MockEC2Client",
    "MockRoute53Client",
    "client_error",
]
