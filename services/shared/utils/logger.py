import os

from aws_lambda_powertools import Logger, Metrics

METRICS_NAMESPACE = "ServerlessCarRental"


def _service(default: str) -> str:
    return os.getenv("POWERTOOLS_SERVICE_NAME") or default


def get_logger(service_name: str = "booking") -> Logger:
    """サービス名付きの構造化ロガーを返す（POWERTOOLS_SERVICE_NAME が優先）"""
    return Logger(service=_service(service_name))


def get_metrics(service_name: str = "booking") -> Metrics:
    """EMF 形式のメトリクスを返す（同一 namespace のインスタンスは状態を共有する）"""
    return Metrics(namespace=METRICS_NAMESPACE, service=_service(service_name))
