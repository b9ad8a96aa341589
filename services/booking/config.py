from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from services.booking.domain.enum import RecancelPolicy


class BookingSettings(BaseModel):
    """予約サービスの設定（環境変数から読み込む）"""

    model_config = ConfigDict(frozen=True)

    table_name: str | None = None
    events_topic: str = "booking-events"
    events_topic_arn: str | None = None
    commands_queue_url: str | None = None
    idempotency_enabled: bool = True
    recancel_policy: RecancelPolicy = RecancelPolicy.FAIL
    worker_partitions: int = Field(default=4, ge=1)
    consumer_group: str = Field(default="booking-service-group", min_length=1)
    outbox_relay_batch_size: int = Field(default=25, ge=1, le=100)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BookingSettings:
        """環境変数から設定を組み立てる（未設定の項目はデフォルト値）"""
        environ = os.environ if environ is None else environ
        values = {
            field: environ[name]
            for name, field in _ENV_VARS.items()
            if environ.get(name) not in (None, "")
        }
        return cls.model_validate(values)


_ENV_VARS: dict[str, str] = {
    "TABLE_NAME": "table_name",
    "BOOKING_EVENTS_TOPIC": "events_topic",
    "BOOKING_EVENTS_TOPIC_ARN": "events_topic_arn",
    "BOOKING_COMMANDS_QUEUE_URL": "commands_queue_url",
    "IDEMPOTENCY_ENABLED": "idempotency_enabled",
    "RECANCEL_POLICY": "recancel_policy",
    "WORKER_PARTITIONS": "worker_partitions",
    "CONSUMER_GROUP": "consumer_group",
    "OUTBOX_RELAY_BATCH_SIZE": "outbox_relay_batch_size",
}
