from tests.fixtures.aws_fixtures import (  # noqa: F401
    aws_credentials,
    aws_factory,
    cognito_pool,
    metadata_store,
    mocked_aws,
    object_storage,
    settings,
)
from tests.fixtures.app_fixtures import (  # noqa: F401
    alice_headers,
    app,
    bob_headers,
    client,
)
