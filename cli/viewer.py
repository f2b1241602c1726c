# cli/viewer.py
"""Live color + histogram-equalized depth viewer and frame recorder."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Callable

import cv2

from capture.camera import CameraInterface, FileCamera, Stream
from capture.image_buffer import compose_side_by_side
from capture.pacer import FramePacer
from capture.pipeline import CapturePipeline, CycleResult
from utils.cli import Command, CommandDispatcher
from utils.config import Config
from utils.error_tracker import CameraError, ErrorTracker
from utils.io import frame_paths, save_npy, write_image
from utils.logger import Logger, LoggerType
from utils import settings
from utils.settings import CaptureCfg, StreamCfg, ViewerCfg, paths

ESC_KEY = 27


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, help="YAML config file")
    parser.add_argument(
        "--replay", type=Path, help="Replay frames recorded by 'snapshot' instead of a camera"
    )
    parser.add_argument("--interval-ms", type=int, help="Pacer tick interval")
    parser.add_argument(
        "--timeout-ms", type=int, help="Frame-sync wait bound, 0 waits forever"
    )


def load_settings(args: argparse.Namespace) -> tuple[CaptureCfg, StreamCfg, ViewerCfg]:
    """Defaults, overlaid by the YAML file, overlaid by the command line."""
    config_file = args.config or paths.CONFIG_FILE
    if args.config is not None or config_file.is_file():
        Config.load(config_file, force_reload=True)
        capture_cfg = Config.section("capture", settings.capture)
        stream_cfg = Config.section("streams", settings.streams)
        viewer_cfg = Config.section("viewer", settings.viewer)
    else:
        capture_cfg = settings.capture
        stream_cfg = settings.streams
        viewer_cfg = settings.viewer
    if args.interval_ms is not None:
        capture_cfg = replace(capture_cfg, interval_ms=args.interval_ms)
    if args.timeout_ms is not None:
        capture_cfg = replace(capture_cfg, wait_timeout_ms=args.timeout_ms)
    if capture_cfg.wait_timeout_ms == 0:
        # 0 from either source means no bound
        capture_cfg = replace(capture_cfg, wait_timeout_ms=None)
    return capture_cfg, stream_cfg, viewer_cfg


def open_camera(args: argparse.Namespace, stream_cfg: StreamCfg) -> CameraInterface:
    if args.replay is not None:
        return FileCamera(args.replay)
    from capture.camera.realsense import RealSenseCamera

    return RealSenseCamera(stream_cfg)


def guarded_cycle(
    pipeline: CapturePipeline, cfg: CaptureCfg, logger: LoggerType
) -> Callable[[], CycleResult | None]:
    """Wrap the pipeline so steady-state camera faults can skip a cycle."""

    def _cycle() -> CycleResult | None:
        try:
            return pipeline()
        except CameraError as e:
            if not cfg.skip_failed_cycles:
                raise
            logger.warning(f"Cycle skipped: {e.describe()}")
            return None

    return _cycle


def _view(args: argparse.Namespace) -> int:
    logger = Logger.get_logger("cli.viewer")
    capture_cfg, stream_cfg, viewer_cfg = load_settings(args)
    camera = open_camera(args, stream_cfg)
    camera.start()

    title = viewer_cfg.window_title.format(name=camera.name)
    pacer = FramePacer(
        guarded_cycle(CapturePipeline(camera, capture_cfg), capture_cfg, logger),
        interval_ms=capture_cfg.interval_ms,
    )
    ErrorTracker.register_cleanup(pacer.stop)
    mailbox = pacer.start_background()
    logger.info(f"Streaming from {camera.name}, ESC to quit")
    try:
        while True:
            result = mailbox.take(timeout=0.05)
            if result is not None:
                canvas = compose_side_by_side(
                    result.color,
                    result.depth,
                    margin=viewer_cfg.margin,
                    background=viewer_cfg.background,
                )
                cv2.imshow(title, canvas)
            elif mailbox.closed:
                break
            if cv2.waitKey(1) & 0xFF == ESC_KEY:
                break
        pacer.join(timeout=2.0)
    finally:
        pacer.stop()
        ErrorTracker.unregister_cleanup(pacer.stop)
        camera.stop()
        cv2.destroyAllWindows()
    logger.info(f"{pacer.cycles} cycles, {mailbox.dropped} frames not shown")
    return 0


def _add_snapshot_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-n", "--count", type=int, default=10, help="Frames to record")
    parser.add_argument(
        "-o", "--output", type=Path, default=paths.SNAPSHOT_DIR, help="Output directory"
    )


def save_cycle(directory: Path, result: CycleResult) -> None:
    """Write color, colorized depth and raw depth of one cycle."""
    color_path, depth_path, depth_vis_path = frame_paths(directory, result.index)
    write_image(color_path, result.color.array)
    write_image(depth_vis_path, result.depth.array)
    if result.raw_depth is not None:
        save_npy(depth_path, result.raw_depth)


def _snapshot(args: argparse.Namespace) -> int:
    logger = Logger.get_logger("cli.snapshot")
    capture_cfg, stream_cfg, _ = load_settings(args)
    if args.count <= 0:
        logger.error("--count must be positive")
        return 1
    args.output.mkdir(parents=True, exist_ok=True)
    camera = open_camera(args, stream_cfg)
    camera.start()
    try:
        with Logger.frame_counter(args.count, "Snapshot") as bar:

            def _record(result: CycleResult) -> None:
                save_cycle(args.output, result)
                bar.update()

            pacer = FramePacer(
                guarded_cycle(CapturePipeline(camera, capture_cfg), capture_cfg, logger),
                interval_ms=capture_cfg.interval_ms,
                on_result=_record,
            )
            pacer.run(max_cycles=args.count)
            saved = bar.n
    finally:
        camera.stop()
    logger.info(f"Recorded {saved}/{pacer.cycles} cycles into {args.output}")
    return 0


def _info(args: argparse.Namespace) -> int:
    capture_cfg, stream_cfg, _ = load_settings(args)
    with open_camera(args, stream_cfg) as camera:
        camera.wait_all_streams(capture_cfg.wait_timeout_ms)
        print(f"Camera: {camera.name}")
        for stream in Stream:
            intr = camera.get_stream_intrinsics(stream)
            print(f"{stream.value}: {intr.width}x{intr.height}")
    return 0


def create_cli() -> CommandDispatcher:
    return CommandDispatcher(
        "Depth camera capture viewer",
        [
            Command("view", _view, None, "Show color and equalized depth live"),
            Command(
                "snapshot", _snapshot, _add_snapshot_arguments, "Record frames to disk"
            ),
            Command("info", _info, None, "Print camera name and stream sizes"),
        ],
        common_arguments=_add_common_arguments,
    )


def main(argv: list[str] | None = None) -> int:
    return create_cli().run(argv, logger=Logger.get_logger("cli.viewer"))


if __name__ == "__main__":
    raise SystemExit(main())
