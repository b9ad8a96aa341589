from .money import Money
from .saga_transaction_id import SagaTransactionId

__all__ = ["Money", "SagaTransactionId"]
