#!/usr/bin/env python3


class HistocamError(Exception):
    """Base exception for acquisition and processing failures"""
    pass


class SourceUnavailable(HistocamError):
    """Raised when the capture device cannot be opened or was lost"""

    def __init__(self, device_index, reason="unable to open capture device"):
        self.device_index = device_index
        super().__init__(f"Video source {device_index}: {reason}")


class OverlayTooLarge(HistocamError):
    """Raised when the overlay does not fit inside the target frame"""

    def __init__(self, overlay_shape, frame_shape):
        self.overlay_shape = tuple(overlay_shape[:2])
        self.frame_shape = tuple(frame_shape[:2])
        super().__init__(
            f"Overlay {self.overlay_shape[1]}x{self.overlay_shape[0]} does not fit "
            f"in frame {self.frame_shape[1]}x{self.frame_shape[0]}")


class EncodeFailed(HistocamError):
    """Raised when a frame cannot be encoded for display"""
    pass


class ShutdownTimeout(HistocamError):
    """Raised when the acquisition worker does not finish in time"""

    def __init__(self, timeout):
        self.timeout = timeout
        super().__init__(f"Acquisition worker did not stop within {timeout * 1000:.0f}ms")
