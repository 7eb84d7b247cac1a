"""レート制限（ペーサー）ユーティリティ"""

import queue
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

from ..exceptions.errors import PacerClosedError, PacerError, PaceTimeoutError
from ..logging.config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# ディスパッチャ停止用の番兵
_STOP = object()


class Pacer:
    """
    一定時間窓あたりの実行許可数を制限するタスクキュー

    投入されたタスクは単一のディスパッチャスレッドが投入順（FIFO）に
    許可し、ワーカースレッドで実行する。任意の ``interval`` 秒の移動窓内で
    許可されるのは最大 ``limit`` 件まで。超過分は破棄せず次の空きまで待たせる。

    ``parse_429`` が有効な場合、タスクの戻り値が ``status_code == 429`` を
    持っていれば Retry-After（無ければ ``interval`` 秒）の間、以降の許可を止める。
    """

    def __init__(
        self,
        limit: int = 1,
        interval: float = 1.0,
        parse_429: bool = True,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            limit: 時間窓あたりの最大許可数
            interval: 時間窓の長さ（秒）
            parse_429: HTTP 429 を検出してバックオフするか
            max_workers: 実行ワーカースレッド数（省略時は max(4, limit)）
        """
        if limit <= 0:
            raise ValueError("limit must be > 0")
        if interval <= 0:
            raise ValueError("interval must be > 0")

        self.limit = int(limit)
        self.interval = float(interval)
        self.parse_429 = parse_429

        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._admissions: deque[float] = deque()
        self._blocked_until = 0.0
        self._lock = threading.Lock()
        self._submit_lock = threading.Lock()
        self._closed = threading.Event()

        workers = max_workers or max(4, self.limit)
        # 空きワーカーを確保してから許可するため、許可時刻 = 実行開始時刻になる
        self._workers = threading.Semaphore(workers)
        self._executor = ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix="pacer-worker",
        )
        self._dispatcher = threading.Thread(
            target=self._dispatch_loop, name="pacer-dispatcher", daemon=True
        )
        self._dispatcher.start()

        logger.debug(f"Pacer initialized: limit={self.limit}, interval={self.interval:.2f}s")

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending(self) -> int:
        """許可待ちのタスク数（概算）"""
        return self._queue.qsize()

    def submit(self, task: Callable[[], T], timeout: Optional[float] = None) -> "Future[T]":
        """
        タスクを投入

        Args:
            task: 引数なしで呼び出される処理
            timeout: 許可待ちの上限（秒）。超過すると PaceTimeoutError で失敗する

        Returns:
            タスクの戻り値（または送出した例外）で完了する Future
        """
        future: "Future[T]" = Future()
        deadline = time.monotonic() + timeout if timeout is not None else None

        with self._submit_lock:
            if self._closed.is_set():
                future.set_exception(PacerClosedError("Pacer is closed"))
                return future
            self._queue.put((task, future, deadline))

        return future

    def close(self, wait: bool = True) -> None:
        """
        ペーサーを停止

        許可待ちのタスクは PacerClosedError で失敗させる。
        実行中のタスクは wait=True の場合に完了まで待つ。
        """
        with self._submit_lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._queue.put(_STOP)

        self._dispatcher.join()
        self._executor.shutdown(wait=wait)
        logger.debug("Pacer closed")

    def _dispatch_loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return

            task, future, deadline = item
            if future.cancelled():
                continue

            try:
                if self._closed.is_set():
                    raise PacerClosedError("Pacer closed before admission")
                self._acquire_worker(deadline)
            except PacerError as e:
                if future.set_running_or_notify_cancel():
                    future.set_exception(e)
                continue

            try:
                self._wait_for_slot(deadline)
            except PacerError as e:
                self._workers.release()
                if future.set_running_or_notify_cancel():
                    future.set_exception(e)
                continue

            # 待機中に呼び出し側でキャンセルされた場合は枠を消費しない
            if not future.set_running_or_notify_cancel():
                self._workers.release()
                continue

            self._record_admission()
            self._executor.submit(self._run, task, future)

    def _acquire_worker(self, deadline: Optional[float]) -> None:
        """空きワーカーを確保（実行中タスクが全ワーカーを占有している間は許可しない）"""
        while not self._workers.acquire(timeout=0.05):
            if self._closed.is_set():
                raise PacerClosedError("Pacer closed while waiting for a free worker")
            if deadline is not None and time.monotonic() > deadline:
                raise PaceTimeoutError("Admission not granted within timeout (all workers busy)")

    def _wait_for_slot(self, deadline: Optional[float]) -> None:
        while True:
            delay = self._admission_delay()
            if delay <= 0:
                return
            if deadline is not None and time.monotonic() + delay > deadline:
                raise PaceTimeoutError(
                    f"Admission not granted within timeout (next slot in {delay:.2f}s)"
                )
            logger.debug(f"Pacing: waiting {delay:.3f}s for next slot")
            if self._closed.wait(delay):
                raise PacerClosedError("Pacer closed while waiting for admission")

    def _admission_delay(self) -> float:
        now = time.monotonic()
        with self._lock:
            while self._admissions and now - self._admissions[0] >= self.interval:
                self._admissions.popleft()

            delay = 0.0
            if len(self._admissions) >= self.limit:
                delay = self._admissions[0] + self.interval - now

            return max(delay, self._blocked_until - now)

    def _record_admission(self) -> None:
        with self._lock:
            self._admissions.append(time.monotonic())

    def _run(self, task: Callable[[], Any], future: Future) -> None:
        # 429 のバックオフを反映してからワーカーを返却する
        try:
            try:
                result = task()
            except Exception as e:
                future.set_exception(e)
                return

            if self.parse_429:
                self._inspect_response(result)
        finally:
            self._workers.release()

        future.set_result(result)

    def _inspect_response(self, result: Any) -> None:
        """429 応答であれば以降の許可を一時停止"""
        if getattr(result, "status_code", None) != 429:
            return

        backoff = _retry_after(result) or self.interval
        with self._lock:
            self._blocked_until = max(self._blocked_until, time.monotonic() + backoff)

        logger.warning(f"Received HTTP 429, pausing admissions for {backoff:.2f}s")

    def __enter__(self) -> "Pacer":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def _retry_after(response: Any) -> Optional[float]:
    """Retry-After ヘッダー（秒数形式のみ）を取得"""
    headers = getattr(response, "headers", None) or {}
    try:
        seconds = float(headers.get("Retry-After"))
    except (TypeError, ValueError):
        return None
    return seconds if seconds > 0 else None
