from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from services.shared.domain import PersistenceException

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"
TRANSACTION_CANCELED = "TransactionCanceledException"


def error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


def transact_write(
    client: Any,
    items: list[dict],
    on_conflict: Callable[[int, dict], Exception],
) -> None:
    """TransactWriteItems を実行する

    条件付き書き込みで取り消された場合は、失敗した項目の位置と
    CancellationReason を on_conflict に渡し、返された例外を送出する。
    """
    try:
        client.transact_write_items(TransactItems=items)
    except ClientError as e:
        if error_code(e) == TRANSACTION_CANCELED:
            reasons = e.response.get("CancellationReasons", [])
            for index, reason in enumerate(reasons):
                if reason.get("Code") == "ConditionalCheckFailed":
                    raise on_conflict(index, reason) from e
        raise PersistenceException(f"DynamoDB transaction failed: {e}") from e
    except BotoCoreError as e:
        raise PersistenceException(f"DynamoDB transaction failed: {e}") from e
