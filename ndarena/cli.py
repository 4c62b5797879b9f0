"""
Command-line interface for ndarena.

This module provides CLI commands for inspecting checkpoints, listing
devices and benchmarking array allocation.
"""

import argparse
import json
import logging
import sys
import time
from typing import Any, Dict, List, Optional, Sequence

from .config import get_config, load_config
from .engine import Engine
from .types.context import Context
from .types.datatype import DataType

logger = logging.getLogger(__name__)

COMMANDS = ('inspect', 'devices', 'benchmark')


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--config', type=str, help='YAML configuration file')
    parser.add_argument('--context', type=str, help='Device such as cpu or gpu(0)')


def _apply_common_arguments(args: argparse.Namespace) -> Optional[Context]:
    if args.config:
        load_config(args.config)
    logging.basicConfig(level=get_config().log_level.upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    return Context.from_string(args.context) if args.context else None


def inspect_command(argv: Sequence[str]) -> int:
    """CLI command printing every parameter of a saved model."""
    parser = argparse.ArgumentParser(prog='ndarena inspect', description='Print the parameters of a checkpoint')
    parser.add_argument('model_path', help='Model directory or a file inside it')
    parser.add_argument('model_name', help='Model name, the prefix of its parameter files')
    parser.add_argument('--epoch', type=str, help='Epoch to load (default: newest)')
    _add_common_arguments(parser)

    args = parser.parse_args(argv)
    context = _apply_common_arguments(args)
    options = {'epoch': args.epoch} if args.epoch is not None else None

    with Engine.get_instance().load_model(args.model_path, args.model_name, context, options) as model:
        print(f"Model {model.name} epoch {model.epoch} ({len(model.parameters)} parameters)")
        for name, array in sorted(model.parameters.items()):
            print(f"{name}:")
            print(array, end='')
    return 0


def devices_command(argv: Sequence[str]) -> int:
    """CLI command describing the engine and visible devices."""
    parser = argparse.ArgumentParser(prog='ndarena devices', description='Show engine and device information')
    _add_common_arguments(parser)

    args = parser.parse_args(argv)
    _apply_common_arguments(args)
    engine = Engine.get_instance()

    info: Dict[str, Any] = {
        'engine': engine.engine_name,
        'version': engine.version,
        'libraries': engine.library_versions(),
        'gpu_count': engine.gpu_count(),
        'default_context': str(engine.default_context()),
        'gpus': [],
    }
    for index in range(engine.gpu_count()):
        usage = engine.gpu_memory(Context.gpu(index))
        info['gpus'].append({'context': f"gpu({index})", 'committed': usage.committed, 'max': usage.max})

    print(json.dumps(info, indent=2))
    return 0


def benchmark_command(argv: Sequence[str]) -> int:
    """CLI command for benchmarking create/close cycles."""
    parser = argparse.ArgumentParser(prog='ndarena benchmark', description='Benchmark array allocation')
    parser.add_argument('--shape', type=int, nargs='+', default=[1000, 1000], help='Array dimensions')
    parser.add_argument('--dtype', type=str, default=None, help='Data type (default: configured)')
    parser.add_argument('--count', type=int, default=100, help='Arrays per iteration')
    parser.add_argument('--iterations', type=int, default=10, help='Number of benchmark iterations')
    parser.add_argument('--output', type=str, help='Output file for results')
    _add_common_arguments(parser)

    args = parser.parse_args(argv)
    context = _apply_common_arguments(args)
    if args.count < 1 or args.iterations < 1:
        parser.error('--count and --iterations must be positive')

    dtype = DataType.of(args.dtype) if args.dtype else None
    manager = Engine.get_instance().new_base_manager(context)
    try:
        results = run_benchmark(manager, args.shape, dtype, args.count, args.iterations)
    finally:
        manager.close()

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2)
    else:
        print(json.dumps(results, indent=2))
    return 0


def _summarize(times: List[float], count: int) -> Dict[str, Any]:
    mean = sum(times) / len(times)
    return {
        'mean': mean,
        'min': min(times),
        'max': max(times),
        'arrays_per_second': count / mean if mean > 0 else None,
        'all': times,
    }


def run_benchmark(
    manager,
    shape: List[int],
    dtype: Optional[DataType],
    count: int,
    iterations: int
) -> Dict[str, Any]:
    """Time allocating ``count`` arrays in a sub-manager and closing it."""
    create_times = []
    close_times = []
    for i in range(iterations):
        scope = manager.new_sub_manager()
        start_time = time.perf_counter()
        for _ in range(count):
            scope.create(shape, dtype)
        create_times.append(time.perf_counter() - start_time)

        start_time = time.perf_counter()
        scope.close()
        close_times.append(time.perf_counter() - start_time)
        logger.info("Iteration %d/%d: create %.4fs, close %.4fs",
                    i + 1, iterations, create_times[-1], close_times[-1])

    return {
        'config': {
            'shape': list(shape),
            'dtype': str(dtype) if dtype is not None else get_config().default_dtype,
            'count': count,
            'iterations': iterations,
            'context': str(manager.context),
        },
        'results': {
            'create_times': _summarize(create_times, count),
            'close_times': _summarize(close_times, count),
        },
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in COMMANDS:
        if argv:
            print(f"Unknown command: {argv[0]}", file=sys.stderr)
        print("Usage: python -m ndarena.cli <command>", file=sys.stderr)
        print(f"Commands: {', '.join(COMMANDS)}", file=sys.stderr)
        return 1

    command, rest = argv[0], argv[1:]
    if command == 'inspect':
        return inspect_command(rest)
    if command == 'devices':
        return devices_command(rest)
    return benchmark_command(rest)


if __name__ == '__main__':
    sys.exit(main())
