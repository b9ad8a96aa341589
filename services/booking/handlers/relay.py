from aws_lambda_powertools.utilities.typing import LambdaContext

from services.booking.config import BookingSettings
from services.booking.handlers.composition import build_relay
from services.shared.utils.logger import get_logger, get_metrics

logger = get_logger()
metrics = get_metrics()

settings = BookingSettings.from_env()
relay = build_relay(settings)


@metrics.log_metrics
@logger.inject_lambda_context
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """未送信の結果イベントを再送する Lambda Handler（スケジュール実行）"""
    logger.info("Relaying pending outbox messages")

    relayed = relay.relay_pending(limit=settings.outbox_relay_batch_size)
    return {"status": "success", "relayed": relayed}
