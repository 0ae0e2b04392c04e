"""
File metadata store backed by a DynamoDB table.

Single-table layout keyed by ``userId`` (partition) and ``fileId`` (sort).
Items keep the camelCase attribute names the API returns, so a stored item
and a response body are the same dict.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from drive_api.errors import ConflictError, NotFoundError, UpstreamError
from drive_api.utils.decorators import log_execution_time

try:
    from mypy_boto3_dynamodb.service_resource import Table
except ImportError:
    ...

logger = logging.getLogger(__name__)

PARTITION_KEY = "userId"
SORT_KEY = "fileId"


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def _from_dynamo(value: Any) -> Any:
    """DynamoDB hands numbers back as Decimal; give callers plain ints/floats."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    return value


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_to_dynamo(v) for v in value]
    return value


class FileMetadataStore:
    """CRUD operations on file records, always scoped by ``userId``."""

    def __init__(self, table: "Table"):
        self.table = table

    @staticmethod
    def _key(user_id: str, file_id: str) -> Dict[str, str]:
        return {PARTITION_KEY: user_id, SORT_KEY: file_id}

    @staticmethod
    def _record_exists() -> Any:
        return Attr(SORT_KEY).exists()

    def _upstream(self, action: str, exc: Exception) -> UpstreamError:
        logger.error(f"DynamoDB {action} failed on '{self.table.name}': {str(exc)}")
        return UpstreamError(f"Failed to {action} file metadata: {str(exc)}")

    @log_execution_time
    def put(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Write a new record. Refuses to overwrite an existing (userId, fileId)."""
        try:
            self.table.put_item(
                Item=_to_dynamo(record),
                ConditionExpression=Attr(SORT_KEY).not_exists(),
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise ConflictError(f"File '{record[SORT_KEY]}' already exists") from e
            raise self._upstream("store", e) from e
        except BotoCoreError as e:
            raise self._upstream("store", e) from e
        return record

    @log_execution_time
    def get(self, user_id: str, file_id: str) -> Dict[str, Any]:
        try:
            response = self.table.get_item(Key=self._key(user_id, file_id))
        except (ClientError, BotoCoreError) as e:
            raise self._upstream("read", e) from e

        item = response.get("Item")
        if item is None:
            raise NotFoundError("File not found")
        return _from_dynamo(item)

    @log_execution_time
    def query(self, user_id: str) -> List[Dict[str, Any]]:
        """Every record owned by ``user_id``, newest upload first.

        The sort key is a random id, so ordering by ``uploadDate`` happens here
        after all pages have been read.
        """
        items: List[Dict[str, Any]] = []
        query_kwargs: Dict[str, Any] = {
            "KeyConditionExpression": Key(PARTITION_KEY).eq(user_id),
        }
        try:
            while True:
                response = self.table.query(**query_kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            raise self._upstream("list", e) from e

        records = [_from_dynamo(item) for item in items]
        records.sort(key=lambda record: record.get("uploadDate") or "", reverse=True)
        return records

    @log_execution_time
    def update(
        self,
        user_id: str,
        file_id: str,
        set_fields: Optional[Dict[str, Any]] = None,
        remove_fields: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """Partially update an existing record and return it as stored."""
        set_fields = set_fields or {}
        remove_fields = list(remove_fields)
        if not set_fields and not remove_fields:
            return self.get(user_id, file_id)

        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        set_clauses = []
        for index, (field, value) in enumerate(set_fields.items()):
            names[f"#s{index}"] = field
            values[f":s{index}"] = _to_dynamo(value)
            set_clauses.append(f"#s{index} = :s{index}")
        remove_clauses = []
        for index, field in enumerate(remove_fields):
            names[f"#r{index}"] = field
            remove_clauses.append(f"#r{index}")

        expression_parts = []
        if set_clauses:
            expression_parts.append("SET " + ", ".join(set_clauses))
        if remove_clauses:
            expression_parts.append("REMOVE " + ", ".join(remove_clauses))

        update_kwargs: Dict[str, Any] = {
            "Key": self._key(user_id, file_id),
            "UpdateExpression": " ".join(expression_parts),
            "ExpressionAttributeNames": names,
            "ConditionExpression": self._record_exists(),
            "ReturnValues": "ALL_NEW",
        }
        if values:
            update_kwargs["ExpressionAttributeValues"] = values

        try:
            response = self.table.update_item(**update_kwargs)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise NotFoundError("File not found") from e
            raise self._upstream("update", e) from e
        except BotoCoreError as e:
            raise self._upstream("update", e) from e
        return _from_dynamo(response.get("Attributes", {}))

    @log_execution_time
    def increment_download_count(self, user_id: str, file_id: str) -> int:
        """Add one to ``downloadCount`` in a single update expression.

        There is no read-modify-write here, so concurrent increments are not
        lost by this call itself; callers that read the record first and then
        increment may still observe a stale count.
        """
        try:
            response = self.table.update_item(
                Key=self._key(user_id, file_id),
                UpdateExpression="SET downloadCount = if_not_exists(downloadCount, :zero) + :inc",
                ExpressionAttributeValues={":zero": 0, ":inc": 1},
                ConditionExpression=self._record_exists(),
                ReturnValues="UPDATED_NEW",
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise NotFoundError("File not found") from e
            raise self._upstream("update", e) from e
        except BotoCoreError as e:
            raise self._upstream("update", e) from e
        return _from_dynamo(response["Attributes"]["downloadCount"])

    @log_execution_time
    def delete(self, user_id: str, file_id: str) -> Dict[str, Any]:
        """Remove a record and return what was stored."""
        try:
            response = self.table.delete_item(
                Key=self._key(user_id, file_id),
                ConditionExpression=self._record_exists(),
                ReturnValues="ALL_OLD",
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise NotFoundError("File not found") from e
            raise self._upstream("delete", e) from e
        except BotoCoreError as e:
            raise self._upstream("delete", e) from e
        return _from_dynamo(response.get("Attributes", {}))

    def exists(self, user_id: str, file_id: str) -> bool:
        try:
            self.get(user_id, file_id)
        except NotFoundError:
            return False
        return True

    def ping(self) -> None:
        try:
            self.table.meta.client.describe_table(TableName=self.table.name)
        except ClientError as e:
            if _error_code(e) == "ResourceNotFoundException":
                raise NotFoundError(f"Table '{self.table.name}' not found") from e
            raise UpstreamError(str(e)) from e
        except BotoCoreError as e:
            raise UpstreamError(str(e)) from e
