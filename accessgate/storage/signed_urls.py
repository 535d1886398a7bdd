"""
Signed-URL issuance for protected downloads (S3-compatible storage, e.g. R2).
"""
import logging
from abc import ABC, abstractmethod

import boto3
from botocore.client import BaseClient

from accessgate.core.config import settings

logger = logging.getLogger(__name__)


class SignedUrlIssuer(ABC):
    @abstractmethod
    def generate_signed_url(self, object_key: str, ttl_seconds: int) -> str:
        """Time-limited GET URL for object_key."""
        raise NotImplementedError


class S3SignedUrlIssuer(SignedUrlIssuer):
    def __init__(self, client: BaseClient | None = None, bucket: str | None = None) -> None:
        self._client = client
        self.bucket = bucket or settings.s3_bucket

    @property
    def client(self) -> BaseClient:
        if self._client is None:
            if not (settings.s3_endpoint_url and settings.s3_access_key_id and settings.s3_secret_access_key):
                logger.warning("s3_config_incomplete")
            session = boto3.session.Session()
            self._client = session.client(
                service_name="s3",
                region_name=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url or None,
                aws_access_key_id=settings.s3_access_key_id or None,
                aws_secret_access_key=settings.s3_secret_access_key or None,
            )
        return self._client

    def generate_signed_url(self, object_key: str, ttl_seconds: int) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": object_key},
            ExpiresIn=ttl_seconds,
        )
