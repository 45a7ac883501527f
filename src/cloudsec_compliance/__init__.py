"""Configuration-compliance engine for tagged AWS resources.

Fetchers enumerate security groups, buckets, IAM roles and EKS clusters and
normalize them into ResourceDescriptors. The ComplianceEngine applies the
RuleRegistry to each descriptor and aggregates verdicts into a Report, which
the publisher turns into a CloudWatch metric and an SNS alert.
"""

__version__ = "0.1.0"
