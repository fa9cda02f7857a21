"""
Platewatch Video Worker

Runs the live scanner on one video source: reads frames on a reader thread,
feeds the pipeline, optionally serves the HTTP API on the same event loop.
"""

import argparse
import asyncio
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from platewatch.alerts.alert_controller import AlertController
from platewatch.alerts.sinks import NotificationSinks
from platewatch.config import DEFAULT_CONFIG, ScannerConfig
from platewatch.detection_store import DetectionStore
from platewatch.plates.base import RecognitionEngine, RegionDetector
from platewatch.plates.matcher import PlateMatcher
from platewatch.plates.watchlist_store import Watchlist
from platewatch.schemas import Orientation
from platewatch.settings import ScannerSettings
from platewatch.video.file_analysis import analyze_image, analyze_video, load_image
from platewatch.video.pipeline import DetectionPipeline
from platewatch.video.frame_source import VideoSource


VIDEO_SUFFIXES = {".mp4", ".mov", ".avi", ".mkv", ".m4v"}


@dataclass
class WorkerConfig:
    """Worker configuration"""
    source: str
    orientation: Orientation = Orientation.UP
    realtime: bool = True
    api_port: Optional[int] = None
    api_host: str = "127.0.0.1"
    stats_interval: float = 30.0


class ScannerWorker:
    """
    Wires the scanner components together and runs them on one loop.
    """

    def __init__(
        self,
        config: WorkerConfig,
        settings: ScannerSettings,
        engine: RecognitionEngine,
        scanner_config: ScannerConfig = DEFAULT_CONFIG,
        detector: Optional[RegionDetector] = None,
        sinks: Optional[NotificationSinks] = None
    ):
        self.config = config
        self.settings = settings
        self.scanner_config = scanner_config

        self.watchlist = Watchlist(
            source_url=scanner_config.watchlist_url,
            timeout=scanner_config.watchlist_timeout,
        )
        self.alerts = AlertController(settings, sinks, scanner_config)
        self.store = DetectionStore(
            alert_controller=self.alerts,
            debug_capacity=scanner_config.debug_crop_capacity,
            recognized_capacity=scanner_config.recognized_capacity,
        )
        self.pipeline = DetectionPipeline(
            settings=settings,
            engine=engine,
            store=self.store,
            matcher=PlateMatcher(self.watchlist),
            detector=detector,
            config=scanner_config,
        )

        self._stop = threading.Event()

    def stop(self):
        self._stop.set()

    def _read_frames(self):
        """Reader thread: push frames into the pipeline until the source ends"""
        source = VideoSource(
            self.config.source,
            orientation=self.config.orientation,
            realtime=self.config.realtime,
        )
        try:
            for frame, orientation in source.frames():
                if self._stop.is_set():
                    break
                self.pipeline.on_frame(frame, orientation)
        except RuntimeError as e:
            print(f"[Worker] {e}")

    async def _report_stats(self):
        while True:
            await asyncio.sleep(self.config.stats_interval)
            self.print_stats()

    async def run(self):
        """Run until the source ends or stop() is called"""
        print("\n" + "=" * 60)
        print("Platewatch Worker Starting")
        print("=" * 60)
        print(f"Source: {self.config.source}")
        print(f"Mode: {self.settings.ocr_mode.value} ({self.settings.plate_detail.value})")
        print(f"Interval: {self.settings.detection_interval:.2f}s")
        print(f"Watchlist: {self.scanner_config.watchlist_url or '(none)'}")
        print("=" * 60)

        await self.store.start()
        await self.pipeline.start()
        self.watchlist.refresh()

        server = None
        server_task = None
        if self.config.api_port:
            import uvicorn
            from platewatch.api import create_app

            app = create_app(self.store, self.watchlist, self.settings)
            server = uvicorn.Server(uvicorn.Config(
                app,
                host=self.config.api_host,
                port=self.config.api_port,
                log_level="warning",
            ))
            server_task = asyncio.create_task(server.serve())
            print(f"[Worker] API on http://{self.config.api_host}:{self.config.api_port}")

        stats_task = asyncio.create_task(self._report_stats())
        loop = asyncio.get_running_loop()

        try:
            await loop.run_in_executor(None, self._read_frames)
            await self.pipeline.drain()
        finally:
            self._stop.set()
            stats_task.cancel()
            self.pipeline.close()
            await self.store.stop()
            self.watchlist.close()
            if server is not None:
                server.should_exit = True
                await server_task
            self.print_stats()

    def print_stats(self):
        """Print worker statistics"""
        pipeline = self.pipeline.get_stats()
        store = self.store.get_stats()
        alerts = self.alerts.get_stats()
        print("\n[Worker Stats]")
        print(f"  Frames admitted: {pipeline['frames_admitted']}")
        print(f"  Frames dropped: {pipeline['frames_dropped']}")
        print(f"  Crops rejected: {pipeline['crops_rejected']}")
        print(f"  Engine errors: {pipeline['engine_errors']}")
        print(f"  Late results ignored: {pipeline['late_results_ignored']}")
        print(f"  Recognized: {store['recognized']} ({store['matches']} matches)")
        print(f"  Alerts fired: {alerts['alerts_fired']} (suppressed {alerts['alerts_suppressed']})")
        print(f"  Watchlist: {self.watchlist.count} entries, updated {self.watchlist.last_update_string()}")


def run_analysis(path: str, engine: RecognitionEngine, step: float) -> int:
    """Analyze a still image or video file and print the results"""
    if Path(path).suffix.lower() in VIDEO_SUFFIXES:
        items = analyze_video(path, engine, step=step)
    else:
        image = load_image(path)
        if image is None:
            return 1
        items = analyze_image(image, engine)

    print(f"[Analysis] {len(items)} text fragments")
    for item in items:
        print(f"  {item.text}")
    return 0


def main():
    """CLI entry point"""
    parser = argparse.ArgumentParser(description='Platewatch Video Worker')
    parser.add_argument('--source', default='0', help='Camera index, RTSP URL or video file')
    parser.add_argument('--orientation', choices=[o.value for o in Orientation], default='up')
    parser.add_argument('--mode', choices=['simple', 'plates'], help='OCR mode')
    parser.add_argument('--plate-detail', choices=['wide', 'precise'], help='Plate aspect band')
    parser.add_argument('--interval', type=float, help='Seconds between processed frames')
    parser.add_argument('--watchlist-url', help='Newline-delimited watchlist URL')
    parser.add_argument('--settings', help='Settings JSON file')
    parser.add_argument('--api-port', type=int, help='Serve the HTTP API on this port')
    parser.add_argument('--no-realtime', action='store_true', help='Read files as fast as possible')
    parser.add_argument('--analyze', metavar='PATH', help='Analyze a still image or video file and exit')

    args = parser.parse_args()

    from platewatch.plates.plate_ocr import TextRecognizer
    engine = TextRecognizer()

    scanner_config = DEFAULT_CONFIG
    if args.watchlist_url:
        scanner_config = replace(DEFAULT_CONFIG, watchlist_url=args.watchlist_url)

    if args.analyze:
        raise SystemExit(run_analysis(args.analyze, engine, scanner_config.video_sample_step))

    overrides = {}
    if args.mode:
        overrides["ocr_mode"] = args.mode
    if args.plate_detail:
        overrides["plate_detail"] = args.plate_detail
    if args.interval is not None:
        overrides["detection_interval"] = args.interval
    settings = ScannerSettings(args.settings, **overrides)

    worker = ScannerWorker(
        WorkerConfig(
            source=args.source,
            orientation=Orientation(args.orientation),
            realtime=not args.no_realtime,
            api_port=args.api_port,
        ),
        settings=settings,
        engine=engine,
        scanner_config=scanner_config,
    )

    try:
        asyncio.run(worker.run())
    except KeyboardInterrupt:
        print("\n[Worker] Interrupted")
        worker.stop()


if __name__ == '__main__':
    main()
