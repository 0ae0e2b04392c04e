"""
Identity adapter backed by a Cognito user pool.

Registration, login and email confirmation are forwarded to the pool's app
client; bearer tokens are resolved to a user id with ``GetUser``. Cognito
error codes are mapped onto the API's error taxonomy here so routers never
see botocore exceptions.
"""

import logging
from dataclasses import dataclass

from botocore.exceptions import BotoCoreError, ClientError

from drive_api.errors import AuthError, ConflictError, DriveAPIError, UpstreamError, ValidationError
from drive_api.utils.decorators import log_execution_time

try:
    from mypy_boto3_cognito_idp import CognitoIdentityProviderClient
except ImportError:
    ...

logger = logging.getLogger(__name__)

# Cognito codes that mean "the provider is unavailable", not "the caller is wrong"
UPSTREAM_ERROR_CODES = {
    "InternalErrorException",
    "TooManyRequestsException",
    "ResourceNotFoundException",
}

REGISTER_CONFLICT_CODES = {"UsernameExistsException", "AliasExistsException"}

LOGIN_AUTH_CODES = {
    "NotAuthorizedException",
    "UserNotConfirmedException",
    "UserNotFoundException",
    "PasswordResetRequiredException",
}


@dataclass(frozen=True)
class TokenSet:
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class AuthContext:
    """The authenticated caller, threaded into every file operation."""

    user_id: str
    access_token: str


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def _error_message(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Message") or str(exc)


class IdentityProvider:
    """Forwards auth calls to one Cognito app client (no client secret)."""

    def __init__(self, cognito_client: "CognitoIdentityProviderClient", client_id: str):
        self.cognito_client = cognito_client
        self.client_id = client_id

    def _translate(self, exc: ClientError, fallback: type) -> DriveAPIError:
        code = _error_code(exc)
        if code in UPSTREAM_ERROR_CODES:
            logger.error(f"Cognito unavailable ({code}): {_error_message(exc)}")
            return UpstreamError(_error_message(exc))
        return fallback(_error_message(exc))

    @log_execution_time
    def register(self, email: str, password: str, name: str) -> None:
        """Create an unconfirmed identity; Cognito emails the confirmation code."""
        if not email or not password:
            raise ValidationError("Email and password are required")
        try:
            self.cognito_client.sign_up(
                ClientId=self.client_id,
                Username=email,
                Password=password,
                UserAttributes=[
                    {"Name": "email", "Value": email},
                    {"Name": "name", "Value": name or ""},
                ],
            )
        except ClientError as e:
            if _error_code(e) in REGISTER_CONFLICT_CODES:
                raise ConflictError(_error_message(e)) from e
            raise self._translate(e, ValidationError) from e
        except BotoCoreError as e:
            raise UpstreamError(str(e)) from e
        logger.info("Registered new unconfirmed user")

    @log_execution_time
    def login(self, email: str, password: str) -> TokenSet:
        try:
            response = self.cognito_client.initiate_auth(
                AuthFlow="USER_PASSWORD_AUTH",
                ClientId=self.client_id,
                AuthParameters={"USERNAME": email, "PASSWORD": password},
            )
        except ClientError as e:
            if _error_code(e) in LOGIN_AUTH_CODES:
                raise AuthError(_error_message(e) or "Invalid credentials") from e
            raise self._translate(e, AuthError) from e
        except BotoCoreError as e:
            raise UpstreamError(str(e)) from e

        result = response.get("AuthenticationResult")
        if not result:
            # a challenge (MFA, NEW_PASSWORD_REQUIRED) is not supported by this API
            raise AuthError(f"Unsupported authentication challenge: {response.get('ChallengeName')}")
        return TokenSet(
            access_token=result["AccessToken"],
            refresh_token=result.get("RefreshToken", ""),
            expires_in=int(result.get("ExpiresIn", 0)),
        )

    @log_execution_time
    def verify(self, email: str, code: str) -> None:
        if not email or not code:
            raise ValidationError("Email and verification code are required")
        try:
            self.cognito_client.confirm_sign_up(
                ClientId=self.client_id,
                Username=email,
                ConfirmationCode=code,
            )
        except ClientError as e:
            raise self._translate(e, ValidationError) from e
        except BotoCoreError as e:
            raise UpstreamError(str(e)) from e

    @log_execution_time
    def resend_verification(self, email: str) -> None:
        if not email:
            raise ValidationError("Email is required")
        try:
            self.cognito_client.resend_confirmation_code(
                ClientId=self.client_id,
                Username=email,
            )
        except ClientError as e:
            raise self._translate(e, ValidationError) from e
        except BotoCoreError as e:
            raise UpstreamError(str(e)) from e

    def authenticate(self, token: str) -> AuthContext:
        """Resolve an access token to the caller's identity."""
        if not token:
            raise AuthError("No token provided")
        try:
            user = self.cognito_client.get_user(AccessToken=token)
        except ClientError as e:
            code = _error_code(e)
            if code in UPSTREAM_ERROR_CODES:
                raise UpstreamError(_error_message(e)) from e
            logger.info(f"Rejected access token ({code})")
            raise AuthError("Invalid token") from e
        except BotoCoreError as e:
            raise UpstreamError(str(e)) from e
        return AuthContext(user_id=user["Username"], access_token=token)

    def ping(self) -> None:
        if not self.client_id:
            raise UpstreamError("COGNITO_CLIENT_ID is not configured")
