"""
Integrity monitor exceptions
"""


class IntegrityMonitorError(Exception):
    """Base error for the integrity monitor"""


class PersistenceError(IntegrityMonitorError):
    """Raised by a storage gateway when the backend read/write fails"""
    
    def __init__(self, operation: str, key: str = None, cause: Exception = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        message = f"Storage {operation} failed"
        if key:
            message += f" for key {key}"
        if cause:
            message += f": {cause}"
        super().__init__(message)
