#!/usr/bin/env python3

import logging
import queue
from collections import namedtuple

logger = logging.getLogger('histocam.sink')

Delivery = namedtuple('Delivery', ['frame_png', 'histogram_png', 'histograms'])


class FrameSink:
    """Hands encoded images from the acquisition worker to the display

    deliver() never blocks: when the display falls behind, the oldest
    pending delivery is dropped to make room.
    """

    def __init__(self, maxsize=2):
        self.frame_queue = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def deliver(self, frame_png, histogram_png, histograms=None):
        """Queue the images of one tick for display"""
        delivery = Delivery(frame_png, histogram_png, histograms)

        # If queue is full, remove oldest delivery to make room
        if self.frame_queue.full():
            try:
                self.frame_queue.get_nowait()
                self.dropped += 1
                logger.debug(f"Display busy, dropped a delivery ({self.dropped} total)")
            except queue.Empty:
                pass

        try:
            self.frame_queue.put_nowait(delivery)
        except queue.Full:
            self.dropped += 1

    def get(self, timeout=None):
        """Next pending delivery, or None if nothing arrived in time"""
        try:
            if timeout is None:
                return self.frame_queue.get_nowait()
            return self.frame_queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def clear(self):
        """Drop all pending deliveries"""
        while True:
            try:
                self.frame_queue.get_nowait()
            except queue.Empty:
                return
