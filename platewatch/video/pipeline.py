"""
Detection Pipeline

Per-frame recognition in two modes:

- simple: the whole frame goes to the recognition engine once and every
  non-empty hit is recorded (scanning stops after the first match)
- plates: rectangle candidates are filtered, padded and brightness-checked;
  each accepted crop is recognized and its first plate-shaped hit recorded

Frames are admitted by a FrameThrottle on the delivery thread and processed
on the event loop; engine calls run on a thread pool. Results reach the
DetectionStore as messages, never as direct mutation.
"""

import asyncio
import concurrent.futures
from concurrent.futures import ThreadPoolExecutor
from typing import FrozenSet, List, Optional, Set

import numpy as np

from platewatch.config import DEFAULT_CONFIG, ScannerConfig
from platewatch.detection_store import DetectionStore, RecordDebugCrop, RecordRecognized, StoreMessage
from platewatch.plates.base import RecognitionEngine, RegionDetector, orient_image
from platewatch.plates.matcher import PlateMatcher
from platewatch.plates.plate_detect import RectangleDetector
from platewatch.plates.regions import BrightnessFilter, CropRegion, RegionProposer
from platewatch.schemas import (
    BoundingBox,
    DebugCrop,
    OCRMode,
    Orientation,
    PlateDetail,
    RecognizedItem,
    TextHit,
)
from platewatch.settings import ScannerSettings
from platewatch.video.frame_sampler import FrameThrottle


class DetectionPipeline:
    """
    Orchestrates frame admission, recognition and result hand-off.

    Results produced for a previous mode, or after close(), are ignored.
    """

    def __init__(
        self,
        settings: ScannerSettings,
        engine: RecognitionEngine,
        store: DetectionStore,
        matcher: PlateMatcher,
        detector: Optional[RegionDetector] = None,
        proposer: Optional[RegionProposer] = None,
        config: ScannerConfig = DEFAULT_CONFIG,
        executor: Optional[concurrent.futures.Executor] = None
    ):
        """
        Args:
            settings: Live settings (mode, plate detail, interval)
            engine: Text recognition capability
            store: Destination for results
            matcher: Watchlist matcher
            detector: Rectangle detection capability (plate mode)
            proposer: Candidate filter / cropper (plate mode)
            config: Static configuration
            executor: Thread pool for engine calls
        """
        self.settings = settings
        self.engine = engine
        self.store = store
        self.matcher = matcher
        self.config = config
        self.detector = detector or RectangleDetector(max_observations=config.max_candidates)
        self.proposer = proposer or RegionProposer(
            max_candidates=config.max_candidates,
            pad_x_fraction=config.pad_x_fraction,
            pad_y_fraction=config.pad_y_fraction,
            max_bottom_edge=config.max_bottom_edge,
            brightness_filter=BrightnessFilter(config.brightness_threshold),
        )
        self.throttle = FrameThrottle(settings, min_interval=config.min_frame_interval)

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.recognition_workers,
            thread_name_prefix="recognition",
        )

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._generation = 0
        self._pending: Set[concurrent.futures.Future] = set()
        self.closed = False

        self.stats = {
            'frames_submitted': 0,
            'frames_processed': 0,
            'engine_errors': 0,
            'detector_errors': 0,
            'late_results_ignored': 0,
            'stale_work_skipped': 0,
        }

        self._unsubscribe = settings.subscribe(self._on_settings_changed)

    @property
    def generation(self) -> int:
        return self._generation

    async def start(self):
        """Bind the pipeline to the running event loop"""
        self._loop = asyncio.get_running_loop()
        print(f"[Pipeline] Started in {self.settings.ocr_mode.value} mode")

    def on_frame(
        self,
        frame: Optional[np.ndarray],
        orientation: Orientation = Orientation.UP,
        now: Optional[float] = None
    ) -> bool:
        """
        Offer a frame. Callable from any thread; never blocks.

        Args:
            frame: BGR frame, or None when the source had nothing to deliver
            orientation: Frame orientation hint
            now: Monotonic time in seconds (default: time.monotonic())

        Returns:
            True if the frame was admitted for processing
        """
        if self.closed or self._loop is None:
            return False

        if frame is None or frame.size == 0:
            return False

        if not self.throttle.should_process(now):
            return False

        coro = self._process_frame(
            frame,
            Orientation(orientation),
            self.settings.ocr_mode,
            self.settings.plate_detail,
            self._generation,
        )
        try:
            future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        except RuntimeError:
            # Loop closed underneath us
            coro.close()
            return False

        self.stats['frames_submitted'] += 1
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)
        return True

    async def drain(self):
        """Wait for in-flight frames and for the store to apply their results"""
        pending = [asyncio.wrap_future(f) for f in list(self._pending)]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await self.store.join()

    def close(self):
        """
        Tear down. Queued frames are skipped and results of in-flight engine
        calls are ignored.
        """
        if self.closed:
            return
        self.closed = True
        self._generation += 1
        self._unsubscribe()
        if self._owns_executor:
            self._executor.shutdown(wait=False)
        print("[Pipeline] Closed")

    def _on_settings_changed(self, changed: FrozenSet[str], settings: ScannerSettings):
        if "ocr_mode" in changed:
            self._generation += 1
            print(f"[Pipeline] Mode switched to {settings.ocr_mode.value}")

    # Frame processing (event loop)

    async def _process_frame(
        self,
        frame: np.ndarray,
        orientation: Orientation,
        mode: OCRMode,
        detail: PlateDetail,
        generation: int
    ):
        try:
            if mode is OCRMode.PLATES:
                await self._run_plates(frame, orientation, detail, generation)
            else:
                await self._run_simple(frame, orientation, generation)
            self.stats['frames_processed'] += 1
        except Exception as e:
            print(f"[Pipeline] Error processing frame: {e}")

    async def _run_simple(self, frame: np.ndarray, orientation: Orientation, generation: int):
        if self._skip_if_stale(generation):
            return
        hits = await self._recognize(frame, orientation)

        for hit in hits:
            decision = self.matcher.evaluate(hit.text, require_plate_shape=True)
            if not decision.text:
                continue

            item = RecognizedItem.create(decision.text, hit.bbox, decision.is_match)
            self._post(generation, RecordRecognized(item))

            if item.is_match:
                break

    async def _run_plates(
        self,
        frame: np.ndarray,
        orientation: Orientation,
        detail: PlateDetail,
        generation: int
    ):
        # Boxes and crops must share coordinates, so work on the upright frame
        upright = orient_image(frame, orientation)
        if self._skip_if_stale(generation):
            return
        boxes = await self._detect(upright)
        if not boxes or self._skip_if_stale(generation):
            return

        regions = self.proposer.propose(upright, boxes, detail)

        tasks = []
        for region in regions:
            if not region.accepted:
                self._post(generation, RecordDebugCrop(DebugCrop.create(region.image, None)))
                continue
            tasks.append(self._recognize_crop(region, generation))

        if tasks:
            await asyncio.gather(*tasks)

    async def _recognize_crop(self, region: CropRegion, generation: int):
        if self._skip_if_stale(generation):
            return
        hits = await self._recognize(region.image, Orientation.UP)

        best_text = None
        for hit in hits:
            decision = self.matcher.evaluate(hit.text, require_plate_shape=True)
            if not decision.plate_shaped:
                continue

            best_text = decision.text
            item = RecognizedItem.create(decision.text, region.source_bbox, decision.is_match)
            self._post(generation, RecordRecognized(item))
            break

        self._post(generation, RecordDebugCrop(DebugCrop.create(region.image, best_text)))

    async def _recognize(self, image: np.ndarray, orientation: Orientation) -> List[TextHit]:
        """Engine call; any failure counts as no hits"""
        loop = asyncio.get_running_loop()
        try:
            hits = await loop.run_in_executor(self._executor, self.engine.recognize_text, image, orientation)
        except Exception as e:
            if self.closed:
                return []
            self.stats['engine_errors'] += 1
            print(f"[Pipeline] Recognition error: {e}")
            return []
        return list(hits or [])

    async def _detect(self, image: np.ndarray) -> List[BoundingBox]:
        """Detector call; any failure counts as no rectangles"""
        loop = asyncio.get_running_loop()
        try:
            boxes = await loop.run_in_executor(
                self._executor, self.detector.detect_rectangles, image, Orientation.UP
            )
        except Exception as e:
            if self.closed:
                return []
            self.stats['detector_errors'] += 1
            print(f"[Pipeline] Rectangle detection error: {e}")
            return []
        return list(boxes or [])

    def _is_stale(self, generation: int) -> bool:
        """Work for an old mode or a closed pipeline is skipped"""
        return self.closed or generation != self._generation

    def _skip_if_stale(self, generation: int) -> bool:
        if self._is_stale(generation):
            self.stats['stale_work_skipped'] += 1
            return True
        return False

    def _post(self, generation: int, message: StoreMessage):
        if self._is_stale(generation):
            self.stats['late_results_ignored'] += 1
            return
        self.store.post(message)

    def get_stats(self) -> dict:
        stats = dict(self.stats)
        stats.update(self.throttle.get_stats())
        stats.update(self.proposer.get_stats())
        stats['mode'] = self.settings.ocr_mode.value
        return stats
