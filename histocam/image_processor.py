#!/usr/bin/env python3

import cv2
import numpy as np
import logging
import time

from histocam.errors import EncodeFailed, OverlayTooLarge

# Configure logging
logger = logging.getLogger('histocam.image_processor')

# Don't set level here - it will be configured by the main application


def frame_channels(frame):
    """Number of channels in a frame (1 for intensity, 3 for BGR)"""
    return 1 if frame.ndim == 2 else frame.shape[2]


class ImageProcessor:
    """Processes camera frames: logo, grayscale, histogram and encoding"""

    # Display color modes
    COLOR_MODE_GRAYSCALE = 0
    COLOR_MODE_COLOR = 1

    # Histogram settings
    HIST_SIZE = 256
    HIST_RANGE = [0, 256]
    HIST_WIDTH = 150
    HIST_HEIGHT = 150
    HIST_THICKNESS = 2
    DEFAULT_INK = (255, 255, 255)

    def __init__(self, ink=DEFAULT_INK):
        logger.info("Initializing ImageProcessor")
        self.ink = tuple(int(c) for c in ink)
        # round(150 / 256) == 1: the polyline runs past the canvas edge and is clipped
        self.bin_width = int(round(self.HIST_WIDTH / self.HIST_SIZE))

        logger.debug(f"Histogram canvas {self.HIST_WIDTH}x{self.HIST_HEIGHT}, "
                     f"bin width {self.bin_width}, ink {self.ink}")

    def get_color_mode_name(self, gray):
        """Get the name of a color mode"""
        color_modes = ["Grayscale", "Color"]
        return color_modes[self.COLOR_MODE_GRAYSCALE if gray else self.COLOR_MODE_COLOR]

    def add_logo(self, frame, logo):
        """Copy the logo onto the bottom-right corner of the frame

        The logo is its own mask: every non-zero logo value replaces the
        frame value underneath it, zero values leave the frame untouched.

        Args:
            frame: 8-bit image, modified in place
            logo: 8-bit image no larger than the frame

        Returns:
            the same frame object

        Raises:
            OverlayTooLarge: if the logo does not fit inside the frame
        """
        frame_h, frame_w = frame.shape[:2]
        logo_h, logo_w = logo.shape[:2]
        if logo_h > frame_h or logo_w > frame_w:
            raise OverlayTooLarge(logo.shape, frame.shape)

        logo = self._match_channels(logo, frame)
        roi = frame[frame_h - logo_h:, frame_w - logo_w:]
        np.copyto(roi, logo, where=logo != 0)
        return frame

    def _match_channels(self, logo, frame):
        """Adapt the logo to the channel layout of the frame"""
        if frame_channels(logo) == 4:
            logo = cv2.cvtColor(logo, cv2.COLOR_BGRA2BGR)
        if frame_channels(logo) == 3 and frame_channels(frame) == 1:
            logo = cv2.cvtColor(logo, cv2.COLOR_BGR2GRAY)

        if frame.ndim == 3 and logo.ndim == 2:
            logo = logo[:, :, np.newaxis]
        elif frame.ndim == 2 and logo.ndim == 3:
            logo = logo[:, :, 0]
        return logo

    def convert_to_gray(self, frame):
        """Convert a BGR frame to a single intensity channel

        Single-channel frames are returned as they are.
        """
        if frame_channels(frame) == 1:
            return frame
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)

    def compute_histograms(self, frame, gray):
        """Compute a 256-bin histogram for each channel plane

        Returns:
            list of uint32 arrays with 256 counts, one for a grayscale
            frame and three (B, G, R) otherwise
        """
        planes = cv2.split(frame)
        if gray:
            planes = planes[:1]
        elif len(planes) < 3:
            raise ValueError(f"Color histogram needs 3 channels, frame has {len(planes)}")

        histograms = []
        for plane in planes[:3]:
            hist = cv2.calcHist([plane], [0], None, [self.HIST_SIZE], self.HIST_RANGE)
            histograms.append(hist.ravel().astype(np.uint32))
        return histograms

    def normalize_histogram(self, hist):
        """Min-max scale histogram counts to [0, HIST_HEIGHT]"""
        hist = np.asarray(hist, dtype=np.float32).reshape(-1, 1)
        normalized = cv2.normalize(hist, None, 0, self.HIST_HEIGHT, cv2.NORM_MINMAX)
        normalized = np.nan_to_num(normalized.ravel(), nan=0.0)
        return np.clip(normalized, 0, self.HIST_HEIGHT)

    def render_histogram(self, histograms):
        """Draw the histograms as polylines on a fresh canvas"""
        canvas = np.zeros((self.HIST_HEIGHT, self.HIST_WIDTH, 3), dtype=np.uint8)
        h = self.HIST_HEIGHT
        bin_w = self.bin_width

        for hist in histograms:
            # halves round up
            values = np.floor(self.normalize_histogram(hist) + 0.5).astype(int)
            for i in range(1, self.HIST_SIZE):
                cv2.line(canvas,
                         (bin_w * (i - 1), h - int(values[i - 1])),
                         (bin_w * i, h - int(values[i])),
                         self.ink, self.HIST_THICKNESS, cv2.LINE_8, 0)
        return canvas

    def encode_frame(self, frame):
        """Encode a frame as PNG bytes

        Raises:
            EncodeFailed: if the frame is empty or the encoder rejects it
        """
        if frame is None or frame.size == 0:
            raise EncodeFailed("Cannot encode an empty frame")
        if frame.dtype not in (np.uint8, np.uint16):
            raise EncodeFailed(f"Unsupported frame depth: {frame.dtype}")

        try:
            ok, buffer = cv2.imencode('.png', frame)
        except cv2.error as e:
            raise EncodeFailed(f"PNG encoding failed: {e}") from e
        if not ok:
            raise EncodeFailed(f"PNG encoding failed for frame {frame.shape}")
        return buffer.tobytes()

    def process_frame(self, frame, logo=None, gray=False):
        """Run the whole pipeline on one captured frame

        Args:
            frame: BGR frame from the video source, modified in place
            logo: optional overlay image, composited when not None
            gray: convert to grayscale before computing the histogram

        Returns:
            dict with the encoded frame, the encoded histogram canvas and
            the raw histogram counts
        """
        start_time = time.time()
        if frame is None:
            logger.warning("Received None frame")
            return None

        logger.debug(f"Processing frame: shape={frame.shape}, "
                     f"mode={self.get_color_mode_name(gray)}, logo={logo is not None}")

        if logo is not None:
            self.add_logo(frame, logo)

        # Convert after the logo so it shows in grayscale too
        if gray:
            frame = self.convert_to_gray(frame)

        histograms = self.compute_histograms(frame, gray)
        canvas = self.render_histogram(histograms)

        result = {
            'frame': self.encode_frame(frame),
            'histogram': self.encode_frame(canvas),
            'histograms': histograms,
            'channels': len(histograms),
        }

        processing_time = (time.time() - start_time) * 1000
        logger.debug(f"Frame processing completed in {processing_time:.1f}ms")
        return result
