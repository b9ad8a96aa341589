from .entity import AggregateRoot, Entity
from .exception import (
    BusinessRuleViolationException,
    DomainException,
    DuplicateResourceException,
    OptimisticLockException,
    PersistenceException,
    ResourceNotFoundException,
    TransportException,
)
from .repository import Repository
from .value_object import Money, SagaTransactionId

__all__ = [
    "Entity",
    "AggregateRoot",
    "Repository",
    "DomainException",
    "ResourceNotFoundException",
    "BusinessRuleViolationException",
    "DuplicateResourceException",
    "OptimisticLockException",
    "PersistenceException",
    "TransportException",
    "SagaTransactionId",
    "Money",
]
