import queue
import threading
import zlib

from aws_lambda_powertools import Logger

from services.booking.handlers.command_dispatcher import CommandDispatcher
from services.booking.worker.command_source import CommandMessage, CommandSource
from services.shared.utils.logger import get_metrics

logger = Logger()
metrics = get_metrics()

_STOP = object()


class _Batch:
    """受信した 1 バッチの進行状況

    失敗したグループの後続メッセージは処理せずにチャネルへ戻す。
    """

    def __init__(self, size: int) -> None:
        self._remaining = size
        self._blocked_groups: set[str] = set()
        self._lock = threading.Lock()
        self._done = threading.Condition(self._lock)

    def is_blocked(self, group_key: str) -> bool:
        with self._lock:
            return group_key in self._blocked_groups

    def block(self, group_key: str) -> None:
        with self._lock:
            self._blocked_groups.add(group_key)

    def task_done(self) -> None:
        with self._done:
            self._remaining -= 1
            if self._remaining <= 0:
                self._done.notify_all()

    def wait(self) -> None:
        with self._done:
            self._done.wait_for(lambda: self._remaining <= 0)


class CommandWorkerPool:
    """コマンドを処理するワーカープール

    プロセス起動時に partitions 個のワーカーを起動する。
    メッセージは MessageGroupId のハッシュでワーカーに割り当てるので、
    同じグループ（予約 / Saga）のコマンドは常に同じワーカーが順番に処理する。
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        source: CommandSource,
        partitions: int = 4,
        group_id: str = "booking-service-group",
    ) -> None:
        if partitions < 1:
            raise ValueError("partitions must be at least 1")
        self._dispatcher = dispatcher
        self._source = source
        self._partitions = partitions
        self._group_id = group_id
        self._queues: list[queue.Queue] = [queue.Queue() for _ in range(partitions)]
        self._stopping = threading.Event()
        self._workers: list[threading.Thread] = []
        self._poller: threading.Thread | None = None

    @property
    def partitions(self) -> int:
        return self._partitions

    @property
    def group_id(self) -> str:
        return self._group_id

    @property
    def running(self) -> bool:
        return self._poller is not None and self._poller.is_alive()

    def partition_for(self, group_key: str) -> int:
        """グループキーの担当ワーカー（プロセスをまたいで安定）"""
        return zlib.crc32(group_key.encode()) % self._partitions

    def start(self) -> None:
        if self._poller is not None:
            raise RuntimeError("Worker pool already started")
        for index, q in enumerate(self._queues):
            worker = threading.Thread(
                target=self._work,
                args=(q,),
                name=f"{self._group_id}-worker-{index}",
                daemon=True,
            )
            worker.start()
            self._workers.append(worker)
        self._poller = threading.Thread(
            target=self._poll, name=f"{self._group_id}-poller", daemon=True
        )
        self._poller.start()
        logger.info(
            "Worker pool started",
            extra={"consumer_group": self._group_id, "partitions": self._partitions},
        )

    def shutdown(self, timeout: float | None = None) -> None:
        """受信を止め、処理中のバッチを捌き切ってからワーカーを止める"""
        self._stopping.set()
        if self._poller is not None:
            self._poller.join(timeout)
        for q in self._queues:
            q.put(_STOP)
        for worker in self._workers:
            worker.join(timeout)
        logger.info("Worker pool stopped", extra={"consumer_group": self._group_id})

    def run_once(self) -> int:
        """1 バッチ受信して全件処理し終えるまで待つ。処理したメッセージ数を返す"""
        messages = self._source.receive()
        if not messages:
            return 0
        batch = _Batch(len(messages))
        for message in messages:
            self._queues[self.partition_for(message.group_key)].put((message, batch))
        batch.wait()
        metrics.flush_metrics()
        return len(messages)

    def _poll(self) -> None:
        while not self._stopping.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Command poller iteration failed")
                self._stopping.wait(1.0)

    def _work(self, q: queue.Queue) -> None:
        while True:
            item = q.get()
            if item is _STOP:
                return
            message, batch = item
            try:
                self._handle(message, batch)
            except Exception:
                logger.exception(
                    "Worker failed to settle command message",
                    extra={"message_id": message.message_id},
                )
            finally:
                batch.task_done()

    def _handle(self, message: CommandMessage, batch: _Batch) -> None:
        if batch.is_blocked(message.group_key):
            self._source.release(message)
            return
        try:
            self._dispatcher.dispatch(message.json_body())
        except Exception:
            logger.exception(
                "Command handling failed, releasing message group",
                extra={
                    "message_id": message.message_id,
                    "group_key": message.group_key,
                },
            )
            batch.block(message.group_key)
            self._source.release(message)
            return
        self._source.ack(message)
