import signal
import threading

from services.booking.config import BookingSettings
from services.booking.handlers.composition import build_dispatcher
from services.booking.infrastructure.sqs_command_source import SqsCommandSource
from services.booking.worker.worker_pool import CommandWorkerPool
from services.shared.utils.logger import get_logger

logger = get_logger()


def main() -> None:
    """常駐ワーカーのエントリーポイント（SIGTERM / SIGINT で停止）"""
    settings = BookingSettings.from_env()
    if not settings.commands_queue_url:
        raise SystemExit("BOOKING_COMMANDS_QUEUE_URL is not set")

    pool = CommandWorkerPool(
        dispatcher=build_dispatcher(settings),
        source=SqsCommandSource(queue_url=settings.commands_queue_url),
        partitions=settings.worker_partitions,
        group_id=settings.consumer_group,
    )
    stop = threading.Event()

    def request_stop(signum, frame) -> None:
        logger.info("Shutdown requested", extra={"signal": signum})
        stop.set()

    signal.signal(signal.SIGTERM, request_stop)
    signal.signal(signal.SIGINT, request_stop)

    pool.start()
    stop.wait()
    pool.shutdown()


if __name__ == "__main__":
    main()
