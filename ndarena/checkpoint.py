"""
Checkpoint file naming and epoch discovery.

A model named ``resnet`` stored in ``models/`` keeps its parameters in
``models/resnet-0001.params``, ``models/resnet-0002.params`` and so on, and
an optional graph description in ``models/resnet-symbol.json``.
"""

from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import CheckpointNotFoundError, InvalidArgumentError

logger = logging.getLogger(__name__)

PARAMS_SUFFIX = ".params"
SYMBOL_SUFFIX = "-symbol.json"
MAX_EPOCH = 9999

PathLike = Union[str, Path]


def parameter_path(model_dir: PathLike, model_name: str, epoch: int) -> Path:
    check_epoch(epoch)
    return Path(model_dir) / f"{model_name}-{epoch:04d}{PARAMS_SUFFIX}"


def symbol_path(model_dir: PathLike, model_name: str) -> Path:
    return Path(model_dir) / f"{model_name}{SYMBOL_SUFFIX}"


def check_epoch(epoch: int) -> int:
    if isinstance(epoch, bool) or not isinstance(epoch, int) or not 0 <= epoch <= MAX_EPOCH:
        raise InvalidArgumentError(
            f"Epoch must be an integer in [0, {MAX_EPOCH}]: {epoch!r}",
            expected=f"[0, {MAX_EPOCH}]", actual=epoch
        )
    return epoch


def parse_epoch(value: Union[str, int]) -> int:
    """Parse an epoch given as an option value such as ``"3"``."""
    if isinstance(value, int) and not isinstance(value, bool):
        return check_epoch(value)
    try:
        epoch = int(str(value).strip())
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid epoch option: {value!r}", expected="integer", actual=value) from e
    return check_epoch(epoch)


def list_epochs(model_dir: PathLike, model_name: str) -> List[int]:
    """Epochs with a parameter file directly inside ``model_dir``, ascending."""
    model_dir = Path(model_dir)
    pattern = re.compile(re.escape(model_name) + r"-(\d{4})" + re.escape(PARAMS_SUFFIX))
    if not model_dir.is_dir():
        return []
    epochs = []
    for entry in model_dir.iterdir():
        match = pattern.fullmatch(entry.name)
        if match is not None and entry.is_file():
            epochs.append(int(match.group(1)))
    return sorted(epochs)


def resolve_epoch(model_dir: PathLike, model_name: str, epoch: Optional[int] = None) -> int:
    """Return ``epoch`` if given, else the newest epoch on disk."""
    if epoch is not None:
        return check_epoch(epoch)
    epochs = list_epochs(model_dir, model_name)
    if not epochs:
        missing = f"{Path(model_dir) / model_name}-0001{PARAMS_SUFFIX}"
        raise CheckpointNotFoundError(f"Parameter files not found: {missing}", pattern=missing)
    logger.debug("Found epochs %s for %s in %s", epochs, model_name, model_dir)
    return epochs[-1]
