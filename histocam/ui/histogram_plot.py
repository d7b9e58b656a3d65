#!/usr/bin/env python3

import logging
import threading

import numpy as np
import matplotlib
# Try to use a backend that works well with OpenCV, but fall back gracefully
try:
    # First try TkAgg as it's widely available
    matplotlib.use('TkAgg')
except ImportError:
    try:
        # Then try Qt5Agg
        matplotlib.use('Qt5Agg')
    except ImportError:
        # Finally fall back to the default backend
        pass
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation

logger = logging.getLogger('histocam.ui.histogram_plot')

# B, G, R planes as split by OpenCV
CHANNEL_STYLES = [('Blue', 'b-'), ('Green', 'g-'), ('Red', 'r-')]
GRAY_STYLE = ('Intensity', 'k-')


class HistogramPlot:
    """Live matplotlib plot of the raw histogram counts"""

    def __init__(self, bins=256):
        self.bins = bins
        self.enabled = False
        self.initialized = False
        self.fig = None
        self.ax = None
        self.lines = []
        self.animation = None
        self.plot_thread = None
        self._latest = None
        self._lock = threading.Lock()

    def update(self, histograms):
        """Store the counts of the latest tick"""
        if not self.enabled or histograms is None:
            return
        with self._lock:
            self._latest = [np.asarray(h) for h in histograms]

    def toggle(self):
        """Toggle plot updates, opening the window the first time"""
        self.enabled = not self.enabled
        if self.enabled and not self.initialized:
            self.initialize()
        logger.info(f"Histogram plot updates {'resumed' if self.enabled else 'paused'}")
        return self.enabled

    def initialize(self):
        """Open the plot window"""
        if self.initialized:
            return

        logger.info("Initializing histogram plot window")

        # Start the plot in a separate thread to avoid blocking the main UI
        self.plot_thread = threading.Thread(target=self._create_plot_window, daemon=True)
        self.plot_thread.start()
        self.initialized = True

    def _create_plot_window(self):
        """Create the plot window in a separate thread"""
        try:
            self.fig = plt.figure(figsize=(6, 3), num="Histogram")
            self.ax = self.fig.add_subplot(111)

            # Set window title if the backend supports it
            try:
                self.fig.canvas.manager.set_window_title('Intensity Histogram')
            except (AttributeError, NotImplementedError):
                pass

            x = np.arange(self.bins)
            for label, style in CHANNEL_STYLES:
                line, = self.ax.plot(x, np.zeros(self.bins), style, linewidth=1, label=label)
                self.lines.append(line)

            self.ax.set_xlim(0, self.bins - 1)
            self.ax.set_ylim(0, 1)
            self.ax.set_xlabel('Intensity')
            self.ax.set_ylabel('Pixels')
            self.ax.grid(True)

            self.animation = FuncAnimation(
                self.fig, self._update_plot, interval=100, blit=False, save_count=100)

            # Show the plot window - this will block in this thread
            plt.tight_layout()
            plt.show()
        except Exception as e:
            logger.error(f"Failed to create histogram plot window: {e}")
            self.initialized = False

    def _update_plot(self, frame):
        """Redraw the lines with the latest counts"""
        with self._lock:
            histograms = self._latest
        if not self.enabled or not histograms:
            return self.lines

        if len(histograms) == 1:
            styles = [GRAY_STYLE]
        else:
            styles = CHANNEL_STYLES

        for i, line in enumerate(self.lines):
            if i < len(histograms):
                line.set_ydata(histograms[i])
                line.set_label(styles[i][0])
                line.set_color(styles[i][1][0])
                line.set_visible(True)
            else:
                line.set_visible(False)

        peak = max(int(h.max()) for h in histograms)
        self.ax.set_ylim(0, max(1, peak) * 1.1)
        self.ax.legend(loc='upper right')
        return self.lines
