#!/usr/bin/env python3

import logging
import threading
from collections import namedtuple
from enum import Enum

logger = logging.getLogger('histocam.session')


class SessionStatus(Enum):
    INACTIVE = 0
    STARTING = 1
    ACTIVE = 2
    STOPPING = 3


# What a single tick needs to know, read in one go
SessionSettings = namedtuple('SessionSettings', ['overlay', 'grayscale'])


class SessionState:
    """Acquisition state shared between the control and worker threads

    Every field is read and written under one lock. The overlay image is
    published read-only and never modified afterwards.
    """

    def __init__(self, grayscale=False, overlay_enabled=False):
        self._lock = threading.Lock()
        self._status = SessionStatus.INACTIVE
        self._grayscale = grayscale
        self._overlay_enabled = overlay_enabled
        self._overlay = None

    @property
    def status(self):
        with self._lock:
            return self._status

    @property
    def active(self):
        return self.status == SessionStatus.ACTIVE

    def transition(self, expected, new):
        """Move from the expected status to a new one

        Returns False, leaving the status unchanged, if the session is not
        in the expected status.
        """
        with self._lock:
            if self._status != expected:
                return False
            self._status = new
        logger.debug(f"Session {expected.name} -> {new.name}")
        return True

    def reset(self):
        """Force the session back to INACTIVE"""
        with self._lock:
            previous, self._status = self._status, SessionStatus.INACTIVE
        if previous != SessionStatus.INACTIVE:
            logger.debug(f"Session {previous.name} -> INACTIVE")

    @property
    def grayscale(self):
        with self._lock:
            return self._grayscale

    @grayscale.setter
    def grayscale(self, enabled):
        with self._lock:
            self._grayscale = bool(enabled)
        logger.info(f"Grayscale {'enabled' if enabled else 'disabled'}")

    @property
    def overlay_enabled(self):
        with self._lock:
            return self._overlay_enabled

    @overlay_enabled.setter
    def overlay_enabled(self, enabled):
        with self._lock:
            self._overlay_enabled = bool(enabled)
        logger.info(f"Logo overlay {'enabled' if enabled else 'disabled'}")

    @property
    def overlay(self):
        with self._lock:
            return self._overlay

    def publish_overlay(self, overlay):
        """Make the overlay image visible to the worker"""
        if overlay is not None:
            overlay.flags.writeable = False
        with self._lock:
            self._overlay = overlay

    def clear_overlay(self):
        """Drop the overlay image and disable it, the session no longer owns it"""
        with self._lock:
            self._overlay = None
            self._overlay_enabled = False

    def toggle_grayscale(self):
        with self._lock:
            self._grayscale = not self._grayscale
            enabled = self._grayscale
        logger.info(f"Grayscale {'enabled' if enabled else 'disabled'}")
        return enabled

    def snapshot(self):
        """Settings for one tick: the overlay to apply (if any) and the color mode"""
        with self._lock:
            overlay = self._overlay if self._overlay_enabled else None
            return SessionSettings(overlay=overlay, grayscale=self._grayscale)
