"""AWS client construction for the three services the API talks to."""
import logging
from typing import Optional

import boto3
from botocore.config import Config

from drive_api.config.settings import Settings

try:
    from mypy_boto3_cognito_idp import CognitoIdentityProviderClient
    from mypy_boto3_dynamodb.service_resource import Table
    from mypy_boto3_s3 import S3Client
except ImportError:
    ...

logger = logging.getLogger(__name__)


class AWSClientFactory:
    """Builds boto3 clients from settings.

    One factory is created per application in ``create_app``; the clients it
    returns are long-lived and shared across requests (boto3 clients are
    thread-safe).
    """

    def __init__(self, settings: Settings, session: Optional[boto3.session.Session] = None):
        self.settings = settings
        self.region = settings.aws_region
        self.endpoint_url = settings.aws_endpoint_url
        self.session = session or boto3.session.Session()

        logger.info("Initializing AWSClientFactory")
        logger.info(f"  Region: {self.region}")
        logger.info(f"  Endpoint: {self.endpoint_url or 'default'}")

    def _client_kwargs(self) -> dict:
        client_kwargs: dict = {"region_name": self.region}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url
        return client_kwargs

    def s3_client(self) -> "S3Client":
        """S3 client pinned to SigV4 so presigned URLs carry ``X-Amz-Expires``."""
        return self.session.client(
            "s3",
            config=Config(signature_version="s3v4"),
            **self._client_kwargs(),
        )

    def dynamodb_table(self, table_name: Optional[str] = None) -> "Table":
        resource = self.session.resource("dynamodb", **self._client_kwargs())
        return resource.Table(table_name or self.settings.dynamodb_table)

    def cognito_client(self) -> "CognitoIdentityProviderClient":
        return self.session.client("cognito-idp", **self._client_kwargs())
