"""AWS fixtures: moto-backed bucket, table and Cognito user pool."""
import boto3
import pytest
from moto import mock_aws

from drive_api.adapters.metadata import FileMetadataStore
from drive_api.adapters.storage import ObjectStorage
from drive_api.aws.clients import AWSClientFactory
from drive_api.config.settings import Settings
from tests.consts import TEST_BUCKET_NAME, TEST_CLIENT_ID, TEST_REGION, TEST_TABLE_NAME


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)


def create_versioned_bucket(bucket_name: str = TEST_BUCKET_NAME) -> None:
    s3_client = boto3.client("s3", region_name=TEST_REGION)
    s3_client.create_bucket(Bucket=bucket_name)
    s3_client.put_bucket_versioning(
        Bucket=bucket_name,
        VersioningConfiguration={"Status": "Enabled"},
    )


def create_files_table(table_name: str = TEST_TABLE_NAME) -> None:
    dynamodb_client = boto3.client("dynamodb", region_name=TEST_REGION)
    dynamodb_client.create_table(
        TableName=table_name,
        KeySchema=[
            {"AttributeName": "userId", "KeyType": "HASH"},
            {"AttributeName": "fileId", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "userId", "AttributeType": "S"},
            {"AttributeName": "fileId", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def mocked_aws(aws_credentials):
    """Versioned bucket and files table inside a moto mock."""
    with mock_aws():
        create_versioned_bucket()
        create_files_table()
        yield


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="development",
        aws_region=TEST_REGION,
        aws_endpoint_url=None,
        s3_bucket=TEST_BUCKET_NAME,
        dynamodb_table=TEST_TABLE_NAME,
        cognito_client_id=TEST_CLIENT_ID,
        log_level="DEBUG",
    )


@pytest.fixture
def aws_factory(mocked_aws, settings) -> AWSClientFactory:
    return AWSClientFactory(settings)


@pytest.fixture
def object_storage(aws_factory, settings) -> ObjectStorage:
    return ObjectStorage(aws_factory.s3_client(), settings.s3_bucket, settings.aws_region)


@pytest.fixture
def metadata_store(aws_factory) -> FileMetadataStore:
    return FileMetadataStore(aws_factory.dynamodb_table())


@pytest.fixture
def cognito_pool(mocked_aws):
    """A user pool plus an app client that allows USER_PASSWORD_AUTH."""
    cognito_client = boto3.client("cognito-idp", region_name=TEST_REGION)
    pool_id = cognito_client.create_user_pool(PoolName="test-pool")["UserPool"]["Id"]
    client_id = cognito_client.create_user_pool_client(
        UserPoolId=pool_id,
        ClientName="test-client",
        ExplicitAuthFlows=["ALLOW_USER_PASSWORD_AUTH", "ALLOW_REFRESH_TOKEN_AUTH"],
    )["UserPoolClient"]["ClientId"]
    return {"client": cognito_client, "pool_id": pool_id, "client_id": client_id}
