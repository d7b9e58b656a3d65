#!/usr/bin/env python3

import logging

import cv2
import numpy as np

from histocam.camera import load_asset
from histocam.errors import SourceUnavailable

logger = logging.getLogger('histocam.ui.camera_viewer')


class CameraViewer:
    """Control thread and display for the acquisition session"""

    def __init__(self, scheduler, session, sink, logo_path=None, plot=None,
                 window_name="Video", histogram_window_name="Histogram"):
        self.scheduler = scheduler
        self.session = session
        self.sink = sink
        self.logo_path = logo_path
        self.plot = plot
        self.window_name = window_name
        self.histogram_window_name = histogram_window_name
        self.running = False
        self.display_width = 600  # fixed width of the frame view
        self.status_message = ""

        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        cv2.namedWindow(self.histogram_window_name, cv2.WINDOW_AUTOSIZE)
        self._show_blank()

    def print_help(self):
        """Print keyboard controls"""
        print("\nKeyboard Controls:")
        print("SPACE - Start/stop the camera")
        print("g     - Toggle grayscale")
        print("l     - Toggle logo overlay")
        print("p     - Toggle histogram plot")
        print("h     - Show this help")
        print("q/ESC - Exit program")

    def toggle_camera(self):
        """Start the camera if stopped, stop it otherwise"""
        if self.session.active:
            self.stop_camera()
        else:
            self.start_camera()

    def start_camera(self):
        """Start acquisition, returns False if the source is unavailable"""
        try:
            started = self.scheduler.start()
        except SourceUnavailable as e:
            logger.error(f"Impossible to open the camera connection: {e}")
            self._set_status("Camera unavailable")
            return False
        if started:
            self._set_status("Camera started")
        else:
            self._set_status("Camera busy, try again")
        return started

    def stop_camera(self):
        """Stop acquisition and clear the frame view"""
        stopped = self.scheduler.stop()
        self.sink.clear()
        self._show_blank()
        if stopped:
            self._set_status("Camera stopped")
        return stopped

    def toggle_grayscale(self):
        enabled = self.session.toggle_grayscale()
        self._set_status("Grayscale" if enabled else "Color")

    def toggle_logo(self):
        """Enable or disable the logo, loading it the first time"""
        if self.session.overlay_enabled:
            self.session.overlay_enabled = False
            self._set_status("Logo off")
            return False

        # read the logo only when it is first requested
        if self.session.overlay is None:
            logo = load_asset(self.logo_path)
            if logo is None:
                self._set_status("Logo unavailable")
                return False
            self.session.publish_overlay(logo)

        self.session.overlay_enabled = True
        self._set_status("Logo on")
        return True

    def toggle_plot(self):
        if self.plot is None:
            logger.info("Histogram plot not available")
            return
        self.plot.toggle()

    def run(self, autostart=False):
        """Main display loop"""
        self.print_help()
        self.running = True
        if autostart:
            self.start_camera()

        while self.running:
            delivery = self.sink.get(timeout=0.05)
            if delivery is not None:
                self._show_delivery(delivery)

            k = cv2.waitKey(1) & 0xFF
            self._handle_key_press(k)

        self.stop()

    def _show_delivery(self, delivery):
        """Decode and display the images of one tick"""
        frame = cv2.imdecode(np.frombuffer(delivery.frame_png, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        histogram = cv2.imdecode(np.frombuffer(delivery.histogram_png, dtype=np.uint8),
                                 cv2.IMREAD_UNCHANGED)
        if frame is None or histogram is None:
            logger.warning("Unable to decode delivered images")
            return

        # set a fixed width for the frame, preserving the image ratio
        h, w = frame.shape[:2]
        if w != self.display_width:
            height = max(1, int(round(h * self.display_width / w)))
            frame = cv2.resize(frame, (self.display_width, height), interpolation=cv2.INTER_AREA)

        cv2.imshow(self.window_name, frame)
        cv2.imshow(self.histogram_window_name, histogram)

        if self.plot is not None:
            self.plot.update(delivery.histograms)

    def _set_status(self, message):
        self.status_message = message
        logger.info(message)

    def _show_blank(self):
        """Clear the frame view"""
        blank = np.zeros((self.display_width * 3 // 4, self.display_width, 3), dtype=np.uint8)
        cv2.imshow(self.window_name, blank)

    def _handle_key_press(self, k):
        """Handle keyboard commands"""
        if k == 255:
            return
        if k in (27, ord('q')):  # ESC or q
            self.running = False
        elif k == ord(' '):
            self.toggle_camera()
        elif k == ord('g'):
            self.toggle_grayscale()
        elif k == ord('l'):
            self.toggle_logo()
        elif k == ord('p'):
            self.toggle_plot()
        elif k == ord('h'):
            self.print_help()

    def stop(self):
        """Stop acquisition and close the windows"""
        self.running = False
        if self.session.active:
            self.scheduler.stop()
        cv2.destroyAllWindows()
