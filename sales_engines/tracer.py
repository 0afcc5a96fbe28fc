"""
Invocation tracing for the pure sales engines.

``@traced_engine`` logs one ``SALES_ENGINE_TRACE`` record per call with the
engine name and version, elapsed milliseconds and a short fingerprint of
the arguments that determine the result.  Two calls with the same
fingerprint on the same engine version must give the same answer, which
is what makes a commission or challenge figure reproducible from logs.

    @traced_engine("commission", "1.0", fingerprint_fields=("sale_input",))
    def compute_commission(sale_input, rules):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from sales_kernel.logging_config import get_logger

TRACE_MESSAGE = "SALES_ENGINE_TRACE"
FINGERPRINT_LENGTH = 16

logger = get_logger("engines.tracer")


def _stable_text(value: Any) -> str:
    match value:
        case None:
            return "null"
        case Enum():
            return str(value.value)
        case str():
            return value
        case bool() | int() | float() | Decimal():
            return str(value)
        case Mapping():
            pairs = sorted((str(k), _stable_text(v)) for k, v in value.items())
            return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
        case list() | tuple():
            return "[" + ",".join(_stable_text(item) for item in value) + "]"
    if is_dataclass(value) and not isinstance(value, type):
        return _stable_text(asdict(value))
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Truncated SHA-256 of ``name=value`` pairs; unbound names hash as null."""
    text = "|".join(
        f"{name}={_stable_text(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                arguments = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            logger.info(
                TRACE_MESSAGE,
                extra={
                    "trace_type": TRACE_MESSAGE,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "duration_ms": elapsed_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
