from __future__ import annotations
from typing import Optional


class NDArenaError(Exception):
    def __init__(self, message: str, **kwargs):
        super().__init__(message)
        self.message = message
        self.context = kwargs


class InvalidArgumentError(NDArenaError, ValueError):
    def __init__(self, message: str, expected: Optional[object] = None,
                 actual: Optional[object] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.expected = expected
        self.actual = actual


class ResourceClosedError(NDArenaError):
    def __init__(self, message: str, resource: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.resource = resource


class DeviceUnavailableError(NDArenaError):
    def __init__(self, message: str, device: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.device = device


class BackendError(NDArenaError):
    def __init__(self, message: str, backend_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.backend_type = backend_type


class AllocationFailure(BackendError):
    def __init__(self, message: str, requested_size: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.requested_size = requested_size


class CheckpointError(NDArenaError):
    pass


class CheckpointNotFoundError(CheckpointError, FileNotFoundError):
    def __init__(self, message: str, pattern: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.pattern = pattern


class CheckpointCorruption(CheckpointError):
    def __init__(self, message: str, entry: Optional[str] = None,
                 expected_checksum: Optional[int] = None,
                 actual_checksum: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.entry = entry
        self.expected_checksum = expected_checksum
        self.actual_checksum = actual_checksum
