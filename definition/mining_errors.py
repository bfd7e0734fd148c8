# Error types raised by the FP-Growth mining engine
# Configuration errors are raised synchronously; worker failures fail the whole mining call


class MiningError(Exception):
    """Base class for every error raised by the mining engine."""


class ConfigurationError(MiningError, ValueError):
    """Invalid engine or rule generator configuration (min_support, parallelism, ...)."""


class UnmappedIdentifierError(MiningError, LookupError):
    """An item id (or item) is unknown to the ItemMapper it was requested from."""


class WorkerFailureError(MiningError, RuntimeError):
    def __init__(self, message, worker_id=None, remote_traceback=None):
        super().__init__(message)
        self.worker_id = worker_id
        self.remote_traceback = remote_traceback

    def __str__(self):
        base = super().__str__()
        if self.worker_id is None:
            return base
        return f"[worker {self.worker_id}] {base}"


class FrozenMapperError(MiningError, RuntimeError):
    """A write (register or clear) was attempted on a read-only ItemMapper snapshot."""
