"""Tests for the bounded-concurrency extraction pool.

Uses fake extractors so no ffmpeg is needed.
"""

import random
import threading
import time

import pytest
from PIL import Image

from heimdex_contact_sheet.errors import Cancelled, ExtractionFailed, PartialExtractionFailure
from heimdex_contact_sheet.frames.extract import Thumbnail
from heimdex_contact_sheet.frames.pool import extract_frames


def _thumb(ts: float) -> Thumbnail:
    return Thumbnail(image=Image.new("RGB", (4, 4)), timestamp_s=ts)


def _fake_extractor(latencies=None):
    def extract(video_path, timestamp_s, width, height, cancel_event):
        if latencies:
            time.sleep(latencies[timestamp_s])
        return _thumb(timestamp_s)
    return extract


class TestOrdering:
    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_output_order_matches_samples(self, seed):
        samples = [float(i * 10) for i in range(12)]
        rng = random.Random(seed)
        latencies = {ts: rng.uniform(0.0, 0.03) for ts in samples}

        thumbs = extract_frames(
            "/tmp/v.mp4", samples, max_workers=4, extractor=_fake_extractor(latencies),
        )

        assert [t.timestamp_s for t in thumbs] == samples

    def test_reverse_completion_order(self):
        samples = [0.0, 1.0, 2.0, 3.0]
        latencies = {0.0: 0.06, 1.0: 0.04, 2.0: 0.02, 3.0: 0.0}

        thumbs = extract_frames(
            "/tmp/v.mp4", samples, max_workers=4, extractor=_fake_extractor(latencies),
        )

        assert [t.timestamp_s for t in thumbs] == samples

    def test_empty_samples(self):
        assert extract_frames("/tmp/v.mp4", [], extractor=_fake_extractor()) == []

    def test_passes_dimensions_and_event(self):
        seen = []
        event = threading.Event()

        def extract(video_path, timestamp_s, width, height, cancel_event):
            seen.append((video_path, width, height, cancel_event))
            return _thumb(timestamp_s)

        extract_frames("/tmp/v.mp4", [1.0], width=320, height=0, cancel_event=event, extractor=extract)

        assert len(seen) == 1
        assert seen[0][:3] == ("/tmp/v.mp4", 320, 0)
        assert isinstance(seen[0][3], threading.Event)


class TestConcurrencyCeiling:
    @pytest.mark.parametrize("max_workers", [1, 2, 4])
    def test_never_exceeds_max_workers(self, max_workers):
        lock = threading.Lock()
        in_flight = 0
        peak = 0

        def extract(video_path, timestamp_s, width, height, cancel_event):
            nonlocal in_flight, peak
            with lock:
                in_flight += 1
                peak = max(peak, in_flight)
            time.sleep(0.01)
            with lock:
                in_flight -= 1
            return _thumb(timestamp_s)

        thumbs = extract_frames(
            "/tmp/v.mp4", [float(i) for i in range(10)], max_workers=max_workers, extractor=extract,
        )

        assert len(thumbs) == 10
        assert 1 <= peak <= max_workers

    def test_invalid_max_workers(self):
        with pytest.raises(ValueError):
            extract_frames("/tmp/v.mp4", [1.0], max_workers=0, extractor=_fake_extractor())


class TestFailurePolicy:
    def test_single_failure_fails_whole_call(self):
        calls = []

        def extract(video_path, timestamp_s, width, height, cancel_event):
            calls.append(timestamp_s)
            if timestamp_s == 20.0:
                raise ExtractionFailed(timestamp_s, "Could not open encoder before EOF")
            return _thumb(timestamp_s)

        samples = [0.0, 10.0, 20.0, 30.0, 40.0]
        with pytest.raises(PartialExtractionFailure) as exc_info:
            extract_frames("/tmp/v.mp4", samples, max_workers=2, extractor=extract)

        assert exc_info.value.failures == [(20.0, "Could not open encoder before EOF")]
        assert exc_info.value.total == 5
        assert sorted(calls) == samples

    def test_collects_every_failure(self):
        def extract(video_path, timestamp_s, width, height, cancel_event):
            if timestamp_s in (10.0, 30.0):
                raise ExtractionFailed(timestamp_s, f"bad frame {timestamp_s}")
            return _thumb(timestamp_s)

        with pytest.raises(PartialExtractionFailure) as exc_info:
            extract_frames("/tmp/v.mp4", [0.0, 10.0, 20.0, 30.0], extractor=extract)

        failed = [ts for ts, _ in exc_info.value.failures]
        assert failed == [10.0, 30.0]
        assert "2 of 4" in str(exc_info.value)

    def test_unexpected_exception_is_collected(self):
        def extract(video_path, timestamp_s, width, height, cancel_event):
            if timestamp_s == 1.0:
                raise OSError("broken pipe")
            return _thumb(timestamp_s)

        with pytest.raises(PartialExtractionFailure, match="broken pipe"):
            extract_frames("/tmp/v.mp4", [0.0, 1.0], extractor=extract)


class TestCancellation:
    def test_pre_cancelled_starts_nothing(self):
        event = threading.Event()
        event.set()
        calls = []

        def extract(video_path, timestamp_s, width, height, cancel_event):
            calls.append(timestamp_s)
            return _thumb(timestamp_s)

        with pytest.raises(Cancelled):
            extract_frames("/tmp/v.mp4", [0.0, 1.0, 2.0], cancel_event=event, extractor=extract)

        assert calls == []

    def test_cancel_mid_run_skips_outstanding_work(self):
        event = threading.Event()
        calls = []

        def extract(video_path, timestamp_s, width, height, cancel_event):
            calls.append(timestamp_s)
            if timestamp_s == 0.0:
                cancel_event.set()
            return _thumb(timestamp_s)

        with pytest.raises(Cancelled):
            extract_frames(
                "/tmp/v.mp4", [float(i) for i in range(20)],
                max_workers=1, cancel_event=event, extractor=extract,
            )

        assert calls == [0.0]

    def test_extractor_cancelled_propagates(self):
        def extract(video_path, timestamp_s, width, height, cancel_event):
            if timestamp_s == 1.0:
                raise Cancelled("killed")
            return _thumb(timestamp_s)

        with pytest.raises(Cancelled):
            extract_frames("/tmp/v.mp4", [0.0, 1.0, 2.0], max_workers=1, extractor=extract)

    def test_cancellation_wins_over_failures(self):
        event = threading.Event()

        def extract(video_path, timestamp_s, width, height, cancel_event):
            if timestamp_s == 0.0:
                raise ExtractionFailed(timestamp_s, "boom")
            cancel_event.set()
            return _thumb(timestamp_s)

        with pytest.raises(Cancelled):
            extract_frames("/tmp/v.mp4", [0.0, 1.0], max_workers=1, cancel_event=event, extractor=extract)

    def test_caller_event_left_untouched(self):
        event = threading.Event()

        def extract(video_path, timestamp_s, width, height, cancel_event):
            raise Cancelled("ffmpeg killed")

        with pytest.raises(Cancelled):
            extract_frames("/tmp/v.mp4", [0.0, 1.0], cancel_event=event, extractor=extract)

        assert not event.is_set()

    def test_external_cancel_reaches_running_extraction(self):
        event = threading.Event()
        started = threading.Event()

        def extract(video_path, timestamp_s, width, height, cancel_event):
            started.set()
            if cancel_event.wait(timeout=5):
                raise Cancelled("ffmpeg killed")
            return _thumb(timestamp_s)

        def cancel_soon():
            started.wait(timeout=5)
            event.set()

        threading.Thread(target=cancel_soon).start()
        t0 = time.monotonic()
        with pytest.raises(Cancelled):
            extract_frames("/tmp/v.mp4", [0.0], cancel_event=event, extractor=extract)

        assert time.monotonic() - t0 < 4
