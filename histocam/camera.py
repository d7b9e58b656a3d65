#!/usr/bin/env python3

import logging
import threading

import cv2
import numpy as np

logger = logging.getLogger('histocam.camera')


class VideoSource:
    """Wrapper for an OpenCV capture device"""

    def __init__(self, capture_factory=cv2.VideoCapture):
        self._capture_factory = capture_factory
        self.capture = None
        self.device_index = None
        # Guards open/release bookkeeping only; a read blocked in the driver
        # must not hold up a forced release
        self._lock = threading.Lock()

    def open(self, device_index=0):
        """Open the capture device, returns True if the stream is available"""
        with self._lock:
            if self.capture is not None and self.capture.isOpened():
                logger.debug(f"Device {self.device_index} already open")
                return True

            self.device_index = device_index
            logger.info(f"Opening capture device {device_index}")
            try:
                self.capture = self._capture_factory(device_index)
            except cv2.error as e:
                logger.error(f"Error opening capture device {device_index}: {e}")
                self.capture = None
                return False

            if not self.capture.isOpened():
                logger.error(f"Impossible to open capture device {device_index}")
                self.capture.release()
                self.capture = None
                return False

            width = int(self.capture.get(cv2.CAP_PROP_FRAME_WIDTH))
            height = int(self.capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
            logger.info(f"Capture device {device_index} opened at {width}x{height}")
            return True

    def is_open(self):
        """Check if the capture device is open"""
        with self._lock:
            return self.capture is not None and self.capture.isOpened()

    def read_frame(self):
        """Read the next frame, returns None when no frame is available"""
        capture = self.capture
        if capture is None:
            return None

        ok, frame = capture.read()
        if not ok or frame is None or frame.size == 0:
            return None
        return frame

    def release(self):
        """Release the capture device"""
        with self._lock:
            capture, self.capture = self.capture, None
        if capture is None:
            return
        logger.info(f"Releasing capture device {self.device_index}")
        capture.release()


def load_asset(path):
    """Load the overlay image from disk

    Args:
        path: image file readable by cv2.imread

    Returns:
        read-only 8-bit BGR image, or None if it could not be loaded
    """
    if not path:
        logger.warning("No overlay path configured")
        return None

    logo = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if logo is None or logo.size == 0:
        logger.error(f"Unable to load overlay image: {path}")
        return None

    if logo.dtype != np.uint8:
        logo = cv2.convertScaleAbs(logo)

    logo.flags.writeable = False
    logger.info(f"Loaded overlay {path} ({logo.shape[1]}x{logo.shape[0]})")
    return logo
