"""Adapters — AWS integrations for the compliance checker.

Contains:
- fetchers.py   — boto3 fetchers producing ResourceDescriptors per kind
- publisher.py  — CloudWatch metric and SNS alert publication
"""

__all__: list[str] = []
