from .command_source import CommandMessage as CommandMessage
from .command_source import CommandSource as CommandSource
from .worker_pool import CommandWorkerPool as CommandWorkerPool
