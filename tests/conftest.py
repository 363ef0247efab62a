from __future__ import annotations

import os
import pathlib
import sys
from dataclasses import dataclass
from pathlib import Path

import cv2
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

os.environ.pop("TELEGRAM_BOT_TOKEN", None)

from degen_bot.bot.dispatcher import CommandDispatcher  # noqa: E402
from degen_bot.bot.overlay import OverlaySessionHandler  # noqa: E402
from degen_bot.config import AssetConfig  # noqa: E402
from degen_bot.core.queue import WorkQueue  # noqa: E402
from degen_bot.core.rate_limiter import RateLimiter  # noqa: E402
from degen_bot.core.session import PendingRequestTable  # noqa: E402
from degen_bot.imaging.assets import OverlayAssets  # noqa: E402
from degen_bot.services.queue_worker import QueueWorker  # noqa: E402
from degen_bot.services.sweeper import ExpirySweeper  # noqa: E402
from tests.fakes import FakeClock, FakeMessenger, make_photo_bytes, make_overlay  # noqa: E402


@dataclass
class Harness:
    clock: FakeClock
    messenger: FakeMessenger
    pending: PendingRequestTable
    rate_limiter: RateLimiter
    queue: WorkQueue
    overlay: OverlaySessionHandler
    dispatcher: CommandDispatcher
    worker: QueueWorker
    sweeper: ExpirySweeper

    async def deliver(self, message) -> None:
        """Push a message through the dispatcher and drain the work queue."""
        await self.dispatcher.handle(message)
        while await self.worker.run_once():
            pass


@pytest.fixture
def overlay_dir(tmp_path: Path) -> Path:
    assert cv2.imwrite(str(tmp_path / "hands_portrait.png"), make_overlay(20, 10))
    assert cv2.imwrite(str(tmp_path / "hands_landscape.png"), make_overlay(10, 20))
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def messenger() -> FakeMessenger:
    fake = FakeMessenger()
    fake.files["big"] = make_photo_bytes()
    fake.files["small"] = make_photo_bytes(3, 4)
    return fake


@pytest.fixture
def harness(clock: FakeClock, messenger: FakeMessenger, overlay_dir: Path) -> Harness:
    pending = PendingRequestTable(clock=clock)
    rate_limiter = RateLimiter(clock=clock)
    queue = WorkQueue()
    overlay = OverlaySessionHandler(
        adapter=messenger,
        pending=pending,
        rate_limiter=rate_limiter,
        assets=OverlayAssets(AssetConfig(directory=str(overlay_dir))),
        retry_wait=0,
    )
    return Harness(
        clock=clock,
        messenger=messenger,
        pending=pending,
        rate_limiter=rate_limiter,
        queue=queue,
        overlay=overlay,
        dispatcher=CommandDispatcher(messenger, overlay, queue),
        worker=QueueWorker(queue, overlay.process_photo),
        sweeper=ExpirySweeper(messenger, pending, rate_limiter),
    )
