"""
Platewatch Detection Store

In-memory recognition log and debug-crop ring buffer. All writes go through
a single asyncio task that consumes an inbox of immutable messages.
"""

import asyncio
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Union

from platewatch.alerts.alert_controller import AlertController
from platewatch.schemas import DebugCrop, RecognizedItem


@dataclass(frozen=True)
class RecordRecognized:
    """Insert a recognized item at the head of the log"""
    item: RecognizedItem


@dataclass(frozen=True)
class RecordDebugCrop:
    """Insert a crop at the head of the debug ring buffer"""
    crop: DebugCrop


StoreMessage = Union[RecordRecognized, RecordDebugCrop]


class DetectionStore:
    """
    Newest-first recognition log plus a bounded debug-crop buffer.

    Producers call post() from any thread; the writer task started by
    start() applies messages one at a time, in arrival order.
    """

    def __init__(
        self,
        alert_controller: Optional[AlertController] = None,
        debug_capacity: int = 20,
        recognized_capacity: int = 1000,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            alert_controller: Receives every matching item
            debug_capacity: Maximum number of debug crops kept
            recognized_capacity: Maximum log length (0 = unbounded)
            clock: Monotonic clock passed to the alert controller
        """
        self.alert_controller = alert_controller
        self.debug_capacity = debug_capacity
        self.recognized_capacity = recognized_capacity
        self.clock = clock

        self._recognized: Deque[RecognizedItem] = deque(maxlen=recognized_capacity or None)
        self._debug_crops: Deque[DebugCrop] = deque(maxlen=debug_capacity)

        self._inbox: Optional[asyncio.Queue] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread_id: Optional[int] = None
        self.task: Optional[asyncio.Task] = None
        self.is_running = False

        self.items_recorded = 0
        self.crops_recorded = 0
        self.messages_dropped = 0

    # Writer lifecycle

    async def start(self):
        """Start the writer task on the running loop"""
        if self.is_running:
            raise ValueError("DetectionStore already running")

        self._loop = asyncio.get_running_loop()
        self._loop_thread_id = threading.get_ident()
        self._inbox = asyncio.Queue()
        self.is_running = True
        self.task = asyncio.create_task(self._consume_loop())

    async def stop(self, drain: bool = True):
        """Stop the writer task, optionally applying queued messages first"""
        if drain and self.is_running:
            await self.join()

        self.is_running = False

        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None

    async def join(self):
        """Wait until every message posted so far has been applied"""
        if self._inbox is None:
            return
        # Let call_soon_threadsafe hand-offs land in the inbox
        await asyncio.sleep(0)
        await self._inbox.join()

    def post(self, message: StoreMessage) -> bool:
        """
        Hand a message to the writer task. Safe from any thread.

        Returns:
            False if the store is not running (message dropped)
        """
        if not self.is_running or self._inbox is None:
            self.messages_dropped += 1
            return False

        if threading.get_ident() == self._loop_thread_id:
            self._inbox.put_nowait(message)
            return True

        try:
            self._loop.call_soon_threadsafe(self._inbox.put_nowait, message)
        except RuntimeError:
            # Loop already closed
            self.messages_dropped += 1
            return False
        return True

    async def _consume_loop(self):
        try:
            while True:
                message = await self._inbox.get()
                try:
                    self._apply(message)
                except Exception as e:
                    print(f"[DetectionStore] Failed to apply {type(message).__name__}: {e}")
                finally:
                    self._inbox.task_done()
        except asyncio.CancelledError:
            print("[DetectionStore] Writer task cancelled")

    def _apply(self, message: StoreMessage):
        if isinstance(message, RecordRecognized):
            self.add_recognized(message.item)
        elif isinstance(message, RecordDebugCrop):
            self.add_debug_crop(message.crop)
        else:
            raise TypeError(f"Unknown store message: {message!r}")

    # Mutations (writer task only)

    def add_recognized(self, item: RecognizedItem):
        """Insert at the head of the log; forward matches to the alert controller"""
        self._recognized.appendleft(item)
        self.items_recorded += 1

        if item.is_match and self.alert_controller is not None:
            self.alert_controller.on_match(item, self.clock())

    def add_debug_crop(self, crop: DebugCrop):
        """Insert at the head of the ring buffer, evicting the oldest beyond capacity"""
        self._debug_crops.appendleft(crop)
        self.crops_recorded += 1

    # Queries

    @property
    def recognized(self) -> List[RecognizedItem]:
        return list(self._recognized)

    @property
    def debug_crops(self) -> List[DebugCrop]:
        return list(self._debug_crops)

    def latest(self, n: int = 5) -> List[RecognizedItem]:
        """The n newest items"""
        return list(self._recognized)[:n]

    def matches(self) -> List[RecognizedItem]:
        """Matching items, newest-first"""
        return [item for item in self._recognized if item.is_match]

    def search(self, query: str) -> List[RecognizedItem]:
        """
        Items whose text contains the query.

        The query is trimmed and uppercased; an empty query returns the log.
        """
        needle = (query or "").strip().upper()
        if not needle:
            return self.recognized
        return [item for item in self._recognized if needle in item.text]

    def get_crop(self, crop_id: str) -> Optional[DebugCrop]:
        for crop in self._debug_crops:
            if crop.id == crop_id:
                return crop
        return None

    def get_stats(self) -> dict:
        return {
            "recognized": len(self._recognized),
            "matches": len(self.matches()),
            "debug_crops": len(self._debug_crops),
            "items_recorded": self.items_recorded,
            "crops_recorded": self.crops_recorded,
            "messages_dropped": self.messages_dropped,
        }
