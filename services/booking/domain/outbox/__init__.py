from .outbox_message import CommandOutcome as CommandOutcome
from .outbox_message import OutboxMessage as OutboxMessage
from .outbox_message import command_key_for as command_key_for
