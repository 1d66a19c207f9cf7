"""Utility helpers for the ReelBox backend.

Submodules:
- aws: boto3 S3 wrapper used by the object store gateway
"""

__all__: list[str] = []
