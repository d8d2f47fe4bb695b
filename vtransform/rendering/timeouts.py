# -*- coding: utf-8 -*-
"""
Limites de tempo para operações do engine

A operação roda numa thread auxiliar; ao estourar o tempo ela é
abandonada (não interrompida) e o job falha.
"""

import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Iterable, Iterator, Optional, TypeVar

from ..domain.errors import EngineTimeoutError
from ..infra.logging import get_logger


T = TypeVar("T")

_EVENT = "event"
_ERROR = "error"
_DONE = "done"


def call_with_timeout(
    fn: Callable[[], T],
    timeout: Optional[float],
    on_timeout: Callable[[float], EngineTimeoutError],
) -> T:
    """Executa fn com limite de tempo; levanta on_timeout(timeout) ao estourar"""
    if not timeout:
        return fn()

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="vtransform")
    future = executor.submit(fn)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        get_logger("Timeouts").error("Operação abandonada após %ss", timeout)
        raise on_timeout(timeout) from None
    finally:
        executor.shutdown(wait=False)


def iterate_with_timeout(
    events: Iterable[T],
    timeout: Optional[float],
    on_timeout: Callable[[float], EngineTimeoutError],
) -> Iterator[T]:
    """
    Repassa os eventos de um iterável enquanto houver tempo.

    O iterável é consumido numa thread auxiliar. Exceções levantadas por ele
    são relançadas aqui. Ao estourar o prazo, a thread para de consumir na
    próxima oportunidade e on_timeout(timeout) é levantado.
    """
    if not timeout:
        yield from events
        return

    channel: "queue.Queue[tuple]" = queue.Queue()
    abandoned = threading.Event()

    def consume():
        iterator = iter(events)
        try:
            for event in iterator:
                if abandoned.is_set():
                    break
                channel.put((_EVENT, event))
        except BaseException as e:
            channel.put((_ERROR, e))
        else:
            channel.put((_DONE, None))
        finally:
            close = getattr(iterator, "close", None)
            if abandoned.is_set() and close is not None:
                close()

    worker = threading.Thread(target=consume, name="vtransform-exec", daemon=True)
    worker.start()

    deadline = time.monotonic() + timeout
    try:
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise on_timeout(timeout)
            try:
                kind, payload = channel.get(timeout=remaining)
            except queue.Empty:
                raise on_timeout(timeout) from None

            if kind == _EVENT:
                yield payload
            elif kind == _ERROR:
                raise payload
            else:
                return
    finally:
        abandoned.set()
