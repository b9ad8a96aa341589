from aws_lambda_powertools.utilities.batch import (
    SqsFifoPartialProcessor,
    process_partial_response,
)
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from aws_lambda_powertools.utilities.typing import LambdaContext

from services.booking.config import BookingSettings
from services.booking.handlers.composition import build_dispatcher
from services.shared.utils.logger import get_logger, get_metrics

logger = get_logger()
metrics = get_metrics()

settings = BookingSettings.from_env()
dispatcher = build_dispatcher(settings)

# 失敗したレコードと同じ MessageGroupId の後続だけを再配信に回す
processor = SqsFifoPartialProcessor(skip_group_on_error=True)


def record_handler(record: SQSRecord) -> None:
    dispatcher.dispatch(record.json_body)


@metrics.log_metrics
@logger.inject_lambda_context
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """booking-commands (SQS FIFO) を処理する Lambda Handler

    結果イベントを送信できなかったコマンドは batchItemFailures として返し、
    キューからの再配信に任せる。
    """
    logger.info(
        "Received booking commands", extra={"records": len(event.get("Records", []))}
    )
    return process_partial_response(
        event=event,
        record_handler=record_handler,
        processor=processor,
        context=context,
    )
