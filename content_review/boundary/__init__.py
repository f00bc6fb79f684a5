"""
Boundary layer.

Adapters for external services (S3, SQS, Bedrock runtime).
"""
