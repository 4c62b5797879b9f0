"""
Model: a named set of parameter arrays backed by checkpoint files.
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Mapping, Optional, Union

from .checkpoint import check_epoch, list_epochs, parameter_path, symbol_path
from .codecs.codec import ParameterCodec
from .config import resolve_compression
from .core.manager import NDManager
from .core.ndarray import NDArray
from .exceptions import CheckpointError, InvalidArgumentError, ResourceClosedError
from .types.context import Context

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Model:
    """Parameters of one model, owned by a dedicated manager.

    Closing the model closes the manager and therefore every parameter.
    """

    __slots__ = ('_name', '_directory', '_epoch', '_manager', '_parameters', '_symbol', '_lock', '_closed')

    def __init__(
        self,
        name: str,
        manager: Optional[NDManager] = None,
        directory: Optional[PathLike] = None,
        epoch: Optional[int] = None,
        parameters: Optional[Mapping[str, NDArray]] = None,
        symbol: Optional[Dict[str, Any]] = None
    ):
        if not name:
            raise InvalidArgumentError("Model name must not be empty")
        self._name = name
        self._manager = manager if manager is not None else NDManager.new_base_manager()
        self._directory = Path(directory) if directory is not None else None
        self._epoch = epoch
        self._parameters: Dict[str, NDArray] = {}
        self._symbol = symbol
        self._lock = RLock()
        self._closed = False
        for key, array in (parameters or {}).items():
            self.set_parameter(key, array)

    @classmethod
    def load(
        cls,
        model_dir: PathLike,
        name: str,
        epoch: int,
        context: Optional[Context] = None
    ) -> Model:
        """Read ``<name>-<epoch>.params`` and the optional symbol file."""
        model_dir = Path(model_dir)
        params_file = parameter_path(model_dir, name, epoch)
        manager = NDManager.new_base_manager(context)
        try:
            data = params_file.read_bytes()
            parameters = ParameterCodec().decode(data, manager)
            symbol = _read_symbol(symbol_path(model_dir, name))
        except Exception:
            manager.close()
            raise
        logger.debug("Loaded %d parameters from %s", len(parameters), params_file)
        return cls(name, manager, model_dir, epoch, parameters, symbol)

    @property
    def name(self) -> str:
        return self._name

    @property
    def directory(self) -> Optional[Path]:
        return self._directory

    @property
    def epoch(self) -> Optional[int]:
        return self._epoch

    @property
    def manager(self) -> NDManager:
        return self._manager

    @property
    def context(self) -> Context:
        return self._manager.context

    @property
    def symbol(self) -> Optional[Dict[str, Any]]:
        return self._symbol

    @property
    def parameters(self) -> Dict[str, NDArray]:
        with self._lock:
            self._check_open()
            return dict(self._parameters)

    def get_parameter(self, key: str) -> NDArray:
        with self._lock:
            self._check_open()
            try:
                return self._parameters[key]
            except KeyError:
                raise KeyError(f"Model {self._name} has no parameter {key!r}") from None

    def set_parameter(self, key: str, array: NDArray) -> None:
        """Store ``array`` under ``key``; the model's manager takes ownership."""
        with self._lock:
            self._check_open()
            array.attach(self._manager)
            previous = self._parameters.get(key)
            self._parameters[key] = array
        if previous is not None and previous is not array:
            previous.close()

    def save(self, directory: Optional[PathLike] = None, epoch: Optional[int] = None) -> Path:
        """Write the parameters as ``<name>-<epoch>.params``.

        Without an explicit epoch the newest epoch in the target directory
        plus one is used, or 1 when none exists. Returns the written path.
        """
        with self._lock:
            self._check_open()
            target = Path(directory) if directory is not None else self._directory
            if target is None:
                raise InvalidArgumentError(f"Model {self._name} has no directory to save to")
            if epoch is None:
                existing = list_epochs(target, self._name)
                epoch = existing[-1] + 1 if existing else 1
            check_epoch(epoch)

            target.mkdir(parents=True, exist_ok=True)
            data = ParameterCodec().encode(self._parameters, resolve_compression())
            path = parameter_path(target, self._name, epoch)
            _write_atomic(path, data)
            if self._symbol is not None:
                _write_atomic(symbol_path(target, self._name), json.dumps(self._symbol, indent=2).encode('utf-8'))

            self._directory = target
            self._epoch = epoch
        logger.debug("Saved %d parameters to %s", len(self._parameters), path)
        return path

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._parameters.clear()
        self._manager.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ResourceClosedError(f"Model {self._name} has been closed", resource="Model")

    def __enter__(self) -> Model:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Model(name={self._name}, epoch={self._epoch}, "
            f"parameters={len(self._parameters)}, context={self._manager.context})"
        )


def _read_symbol(path: Path) -> Optional[Dict[str, Any]]:
    if not path.is_file():
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise CheckpointError(f"Invalid symbol file {path}: {e}") from e


def _write_atomic(path: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise
