#!/usr/bin/env python3

import logging
import threading
import time

from histocam.errors import HistocamError, ShutdownTimeout, SourceUnavailable
from histocam.session import SessionStatus

logger = logging.getLogger('histocam.scheduler')


class AcquisitionScheduler:
    """Runs the frame pipeline periodically on a single worker thread

    Ticks run at a fixed rate and never overlap. A tick that overruns the
    period delays the next one instead of triggering a burst of catch-up
    ticks.
    """

    # grab a frame every 33 ms (30 frames/sec)
    FRAME_PERIOD_MS = 33

    def __init__(self, source, processor, session, sink, device_index=0,
                 period_ms=FRAME_PERIOD_MS):
        self.source = source
        self.processor = processor
        self.session = session
        self.sink = sink
        self.device_index = device_index
        self.period_ms = period_ms

        self.tick_count = 0
        self.error_count = 0

        self._worker = None
        self._stop_event = threading.Event()
        self._stop_event.set()
        # start() and stop() are control-thread operations
        self._control_lock = threading.Lock()
        self._release_lock = threading.Lock()
        self._released = True

    @property
    def period(self):
        return self.period_ms / 1000.0

    def is_running(self):
        """Check if the worker thread is alive"""
        return self._worker is not None and self._worker.is_alive()

    def start(self):
        """Open the video source and start the acquisition worker

        Returns:
            True if acquisition started, False if the session was not inactive
            or the previous worker has not exited yet

        Raises:
            SourceUnavailable: if the video source cannot be opened
        """
        with self._control_lock:
            # a worker abandoned by a timed-out stop() may still be inside a read
            previous = self._worker
            if previous is not None and previous.is_alive():
                previous.join(timeout=self.period)
                if previous.is_alive():
                    logger.warning("Previous acquisition worker is still running, not starting")
                    return False

            if not self.session.transition(SessionStatus.INACTIVE, SessionStatus.STARTING):
                logger.warning(f"Cannot start acquisition, session is {self.session.status.name}")
                return False

            opened = False
            try:
                opened = self.source.open(self.device_index)
            finally:
                if not opened:
                    self.session.reset()
            if not opened:
                raise SourceUnavailable(self.device_index)

            self._released = False
            self._stop_event = threading.Event()
            self._worker = threading.Thread(target=self._run, args=(self._stop_event,),
                                            name='histocam-acquisition', daemon=True)
            self.session.transition(SessionStatus.STARTING, SessionStatus.ACTIVE)
            self._worker.start()

            logger.info(f"Acquisition started on device {self.device_index} "
                        f"every {self.period_ms}ms")
            return True

    def stop(self):
        """Stop the worker and release the video source

        Waits at most one period for the running tick. If it does not finish
        the source is released anyway and the tick's result is discarded.
        The overlay is dropped with the session.

        Returns:
            True if acquisition was stopped, False if it was not running
        """
        with self._control_lock:
            if not self.session.transition(SessionStatus.ACTIVE, SessionStatus.STOPPING):
                logger.debug(f"Acquisition not running, session is {self.session.status.name}")
                return False

            self._stop_event.set()
            try:
                self._join_worker()
            except ShutdownTimeout as e:
                logger.warning(f"{e}, trying to release the camera now")

            self._release_source()
            self.session.clear_overlay()
            self.session.reset()
            logger.info(f"Acquisition stopped after {self.tick_count} frames")
            return True

    def _join_worker(self):
        worker = self._worker
        if worker is None or worker is threading.current_thread():
            return
        worker.join(timeout=self.period)
        if worker.is_alive():
            raise ShutdownTimeout(self.period)

    def _release_source(self):
        """Release the video source once per start()"""
        with self._release_lock:
            if self._released:
                return
            self._released = True
        self.source.release()

    def _abort(self, stop_event):
        """Stop the session from the worker after the source was lost"""
        if stop_event is not self._stop_event:
            return
        if not self.session.transition(SessionStatus.ACTIVE, SessionStatus.STOPPING):
            # stop() got there first
            return
        self._stop_event.set()
        self._release_source()
        self.session.clear_overlay()
        self.session.reset()

    def _run(self, stop_event):
        """Worker loop"""
        logger.debug("Acquisition worker started")
        next_run = time.monotonic()

        while not stop_event.is_set():
            try:
                self.tick(stop_event)
            except SourceUnavailable as e:
                if stop_event.is_set():
                    break
                logger.error(f"{e}, stopping acquisition")
                self._abort(stop_event)
                break
            except HistocamError as e:
                self.error_count += 1
                logger.warning(f"Frame dropped: {e}")
            except Exception as e:
                self.error_count += 1
                logger.exception(f"Exception during the frame elaboration: {e}")

            next_run += self.period
            now = time.monotonic()
            if next_run < now:
                # Overrun: run the next tick right away, without catching up
                next_run = now
            stop_event.wait(next_run - now)

        logger.debug("Acquisition worker exited")

    def tick(self, stop_event=None):
        """Acquire, process and hand off a single frame

        Returns:
            True if images were delivered to the sink
        """
        settings = self.session.snapshot()

        frame = self.source.read_frame()
        if frame is None:
            if not self.source.is_open():
                raise SourceUnavailable(self.device_index, "capture device lost")
            logger.debug("Empty frame, skipping tick")
            return False

        result = self.processor.process_frame(frame, settings.overlay, settings.grayscale)
        if result is None:
            return False

        if stop_event is not None and stop_event.is_set():
            logger.debug("Stop requested, discarding processed frame")
            return False

        self.sink.deliver(result['frame'], result['histogram'], result['histograms'])
        self.tick_count += 1
        return True
