"""
Overlay Session Tests
=====================

Tests for the capture -> encode -> detect -> store -> paint flow.
"""

import asyncio

import pytest

from jewelry_overlay.detection import MockLandmarkDetector
from jewelry_overlay.encoding import FrameEncoder
from jewelry_overlay.models.frame import PixelFormat
from jewelry_overlay.models.landmarks import LandmarkSet
from jewelry_overlay.models.placement import Size
from jewelry_overlay.pipeline import DetectionResult, LatestResultCell, OverlaySession
from jewelry_overlay.projection import OverlayProjector


class GatedDetector:
    """Detector whose calls block until released."""

    def __init__(self, landmark_sets):
        self.landmark_sets = landmark_sets
        self.release = asyncio.Event()
        self.frames = []
        self.closed = False

    async def detect(self, frame):
        self.frames.append(frame.frame_id)
        await self.release.wait()
        return list(self.landmark_sets)

    def close(self):
        self.closed = True


class SlowDetector:
    """Detector that takes a while and records overlapping close calls."""

    def __init__(self, landmark_sets, delay):
        self.landmark_sets = landmark_sets
        self.delay = delay
        self.running = False
        self.completed = 0
        self.closed = False
        self.closed_during_detect = False

    async def detect(self, frame):
        self.running = True
        await asyncio.sleep(self.delay)
        self.running = False
        self.completed += 1
        return list(self.landmark_sets)

    def close(self):
        self.closed_during_detect = self.running
        self.closed = True


class RecordingDetector:
    """Detector that keeps every frame it is given and finds no faces."""

    def __init__(self):
        self.frames = []

    async def detect(self, frame):
        self.frames.append(frame)
        return []

    def close(self):
        pass


class FailingDetector:
    async def detect(self, frame):
        raise RuntimeError("model crashed")

    def close(self):
        pass


def _session(detector, catalog, platform="android"):
    return OverlaySession(
        encoder=FrameEncoder(),
        detector=detector,
        projector=OverlayProjector(catalog),
        platform=platform,
    )


class TestLatestResultCell:
    """Tests for LatestResultCell."""

    def test_empty(self):
        cell = LatestResultCell()
        assert cell.read() is None
        assert cell.publish_count == 0

    def test_publish_replaces(self):
        cell = LatestResultCell()
        first = DetectionResult(frame_id=1, frame_size=Size(640, 480))
        second = DetectionResult(frame_id=2, frame_size=Size(640, 480))

        cell.publish(first)
        cell.publish(second)

        assert cell.read() is second
        assert cell.publish_count == 2
        assert cell.metrics()["latest_frame_id"] == 2

    def test_clear(self):
        cell = LatestResultCell()
        cell.publish(DetectionResult(frame_id=1, frame_size=Size(1, 1)))
        cell.clear()
        assert cell.read() is None


class TestOverlaySession:
    """Tests for OverlaySession."""

    def test_paint_before_any_result(self, catalog):
        session = _session(MockLandmarkDetector(), catalog)
        frame = session.paint(Size(1080, 1920))

        assert frame.is_empty
        assert frame.frame_id == -1

    def test_submit_then_paint(self, make_raw_frame, catalog):
        async def scenario():
            session = _session(MockLandmarkDetector(), catalog)
            started = await session.submit(make_raw_frame(width=640, height=480, frame_id=5))
            await session.drain()
            return started, session.paint(Size(1080, 1920)), session

        started, frame, session = asyncio.run(scenario())

        assert started
        assert frame.frame_id == 5
        assert frame.faces_rendered == 1
        assert len(frame.placements) == 3
        assert session.metrics.detections_completed == 1

    def test_frame_size_from_descriptor(self, make_raw_frame, catalog, face_landmarks):
        """Paint maps from the detected frame's size, not the viewport."""
        async def scenario():
            detector = GatedDetector([face_landmarks])
            detector.release.set()
            session = _session(detector, catalog)
            await session.submit(make_raw_frame(width=640, height=480))
            await session.drain()
            return session.cell.read(), session.paint(Size(1080, 1920))

        result, frame = asyncio.run(scenario())

        assert result.frame_size == Size(640.0, 480.0)
        assert frame.transform.offset_y == pytest.approx(555.0)

    def test_at_most_one_in_flight(self, make_raw_frame, catalog, face_landmarks):
        """Frames arriving during detection are encoded but not detected."""
        async def scenario():
            detector = GatedDetector([face_landmarks])
            session = _session(detector, catalog)

            results = [
                await session.submit(make_raw_frame(frame_id=frame_id))
                for frame_id in range(4)
            ]
            await asyncio.sleep(0)
            in_flight = session.detection_in_flight

            detector.release.set()
            await session.drain()
            return results, in_flight, detector, session

        results, in_flight, detector, session = asyncio.run(scenario())

        assert results == [True, False, False, False]
        assert in_flight
        assert detector.frames == [0]
        assert session.metrics.frames_skipped_busy == 3
        assert session.encoder.frames_encoded == 4
        assert session.cell.read().frame_id == 0

    def test_next_detection_after_completion(self, make_raw_frame, catalog):
        async def scenario():
            session = _session(MockLandmarkDetector(), catalog)
            await session.submit(make_raw_frame(frame_id=1))
            await session.drain()
            await session.submit(make_raw_frame(frame_id=2))
            await session.drain()
            return session

        session = asyncio.run(scenario())

        assert session.metrics.detections_completed == 2
        assert session.cell.read().frame_id == 2

    def test_encode_failure_skips_detection(self, make_raw_frame, catalog):
        async def scenario():
            detector = MockLandmarkDetector()
            session = _session(detector, catalog)
            started = await session.submit(make_raw_frame(planes=()))
            return started, detector, session

        started, detector, session = asyncio.run(scenario())

        assert not started
        assert detector.calls == 0
        assert session.metrics.encode_failures == 1

    def test_unsupported_platform_drops_frame(self, make_raw_frame, catalog):
        async def scenario():
            session = _session(MockLandmarkDetector(), catalog, platform="web")
            return await session.submit(make_raw_frame()), session

        started, session = asyncio.run(scenario())

        assert not started
        assert session.metrics.encode_failures == 1

    def test_frame_platform_selects_format(self, make_raw_frame, catalog):
        """The platform reported with the frame wins over the session default."""
        async def scenario():
            detector = RecordingDetector()
            session = _session(detector, catalog, platform="android")
            await session.submit(make_raw_frame(platform="ios"))
            await session.drain()
            await session.submit(make_raw_frame(frame_id=1))
            await session.drain()
            return detector

        detector = asyncio.run(scenario())

        assert [frame.descriptor.pixel_format for frame in detector.frames] == [
            PixelFormat.BGRA8888,
            PixelFormat.NV21,
        ]

    def test_frame_platform_unsupported(self, make_raw_frame, catalog):
        async def scenario():
            detector = RecordingDetector()
            session = _session(detector, catalog, platform="android")
            started = await session.submit(make_raw_frame(platform="desktop"))
            return started, detector, session

        started, detector, session = asyncio.run(scenario())

        assert not started
        assert detector.frames == []
        assert session.metrics.encode_failures == 1

    def test_detector_error_counted(self, make_raw_frame, catalog):
        async def scenario():
            session = _session(FailingDetector(), catalog)
            await session.submit(make_raw_frame())
            await session.drain()
            return session

        session = asyncio.run(scenario())

        assert session.metrics.detection_errors == 1
        assert session.cell.read() is None

    def test_close_discards_pending_result(self, make_raw_frame, catalog, face_landmarks):
        """A detection still pending at close never reaches the cell."""
        async def scenario():
            detector = GatedDetector([face_landmarks])
            session = _session(detector, catalog)
            await session.submit(make_raw_frame())
            await asyncio.sleep(0)

            closing = asyncio.create_task(session.close())
            await asyncio.sleep(0)
            closed_before_release = detector.closed

            detector.release.set()
            await closing
            return closed_before_release, detector, session

        closed_before_release, detector, session = asyncio.run(scenario())

        assert session.closed
        assert not closed_before_release
        assert detector.closed
        assert session.metrics.results_discarded == 1
        assert session.cell.read() is None
        assert session.paint(Size(100, 100)).is_empty

    def test_close_waits_for_running_detection(self, make_raw_frame, catalog, face_landmarks):
        """The detector is never closed while a detect call is running."""
        async def scenario():
            detector = SlowDetector([face_landmarks], delay=0.05)
            session = _session(detector, catalog)
            await session.submit(make_raw_frame())
            await asyncio.sleep(0)
            await session.close()
            return detector, session

        detector, session = asyncio.run(scenario())

        assert detector.closed
        assert not detector.closed_during_detect
        assert detector.completed == 1
        assert session.metrics.results_discarded == 1
        assert session.cell.read() is None

    def test_close_timeout_cancels_detection(self, make_raw_frame, catalog, face_landmarks):
        """A detection that outlives close_timeout is cancelled."""
        async def scenario():
            detector = GatedDetector([face_landmarks])
            session = OverlaySession(
                encoder=FrameEncoder(),
                detector=detector,
                projector=OverlayProjector(catalog),
                platform="android",
                close_timeout=0.01,
            )
            await session.submit(make_raw_frame())
            await asyncio.sleep(0)
            await session.close()
            return detector, session

        detector, session = asyncio.run(scenario())

        assert detector.closed
        assert not session.detection_in_flight
        assert session.cell.read() is None

    def test_late_result_after_close_discarded(self, make_raw_frame, catalog):
        """A result that completes after close is counted and dropped."""
        async def scenario():
            session = _session(MockLandmarkDetector(), catalog)
            encoded = session.encoder.encode(make_raw_frame(), "android")
            await session.close()
            await session._detect(encoded)
            return session

        session = asyncio.run(scenario())

        assert session.metrics.results_discarded == 1
        assert session.cell.read() is None

    def test_submit_after_close_ignored(self, make_raw_frame, catalog):
        async def scenario():
            session = _session(MockLandmarkDetector(), catalog)
            await session.close()
            await session.close()
            return await session.submit(make_raw_frame()), session

        started, session = asyncio.run(scenario())

        assert not started
        assert session.metrics.frames_submitted == 0

    def test_zero_frame_size_skips_paint(self, catalog, face_landmarks):
        session = _session(MockLandmarkDetector(), catalog)
        session.cell.publish(
            DetectionResult(frame_id=3, frame_size=Size(0, 0), landmark_sets=(face_landmarks,))
        )

        frame = session.paint(Size(1080, 1920))

        assert frame.is_empty
        assert session.metrics.paints_skipped == 1

    def test_debug_override(self, catalog, face_landmarks):
        session = _session(MockLandmarkDetector(), catalog)
        session.cell.publish(
            DetectionResult(frame_id=1, frame_size=Size(640, 480), landmark_sets=(face_landmarks,))
        )

        assert session.paint(Size(640, 480)).debug_boxes == ()
        assert len(session.paint(Size(640, 480), debug=True).debug_boxes) == 1

    def test_metrics_dict(self, catalog):
        session = _session(MockLandmarkDetector(), catalog)
        stats = session.metrics_dict()

        assert stats["detection_in_flight"] is False
        assert stats["encoder"] == {"frames_encoded": 0, "frames_rejected": 0}
        assert stats["publish_count"] == 0
