"""
Engine entry point for ndarena.

The engine reports device information, hands out base managers and loads
models from checkpoint directories.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import numpy as np
import torch

from .checkpoint import parse_epoch, resolve_epoch
from .core.manager import NDManager
from .exceptions import InvalidArgumentError
from .model import Model
from .types.context import Context, gpu_count

logger = logging.getLogger(__name__)

ENGINE_NAME = "ndarena"


@dataclass(frozen=True)
class MemoryUsage:
    """Device memory in bytes."""
    committed: int
    max: int


class Engine:
    __slots__ = ()

    @staticmethod
    def get_instance() -> Engine:
        return _get_engine()

    @property
    def engine_name(self) -> str:
        return ENGINE_NAME

    @property
    def version(self) -> str:
        from . import __version__
        return __version__

    def library_versions(self) -> Dict[str, str]:
        return {
            'numpy': np.__version__,
            'torch': torch.__version__,
            'cuda': torch.version.cuda or "unavailable",
        }

    def gpu_count(self) -> int:
        return gpu_count()

    def gpu_memory(self, context: Context) -> MemoryUsage:
        if not context.is_gpu:
            raise InvalidArgumentError(
                f"GPU memory requested for non-GPU context {context}",
                expected="gpu", actual=str(context)
            )
        free, total = torch.cuda.mem_get_info(context.to_torch_device())
        return MemoryUsage(committed=total - free, max=total)

    def default_context(self) -> Context:
        return Context.default_context()

    def new_base_manager(self, context: Optional[Context] = None) -> NDManager:
        return NDManager.new_base_manager(context)

    def load_model(
        self,
        model_path: Union[str, Path],
        model_name: str,
        context: Optional[Context] = None,
        options: Optional[Mapping[str, str]] = None
    ) -> Model:
        """Load ``model_name`` from a directory, or from the directory of a file.

        The ``"epoch"`` option picks a checkpoint; by default the newest
        ``<model_name>-NNNN.params`` file is used.
        """
        model_path = Path(model_path).absolute()
        model_dir = model_path if model_path.is_dir() else model_path.parent

        epoch_option = (options or {}).get("epoch")
        epoch = parse_epoch(epoch_option) if epoch_option is not None else None
        epoch = resolve_epoch(model_dir, model_name, epoch)

        logger.debug("Loading %s epoch %d from %s", model_name, epoch, model_dir)
        return Model.load(model_dir, model_name, epoch, context)

    def __repr__(self) -> str:
        return f"Engine(name={ENGINE_NAME}, version={self.version}, gpus={self.gpu_count()})"


@lru_cache(maxsize=1)
def _get_engine() -> Engine:
    engine = Engine()
    logger.debug("Initialized %s engine %s", ENGINE_NAME, engine.version)
    return engine


__all__ = [
    "Engine",
    "MemoryUsage",
    "ENGINE_NAME",
    "resolve_epoch",
]
