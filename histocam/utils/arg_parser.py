#!/usr/bin/env python3

import argparse


def parse_color(value):
    """Parse an 'R,G,B' color into an OpenCV BGR tuple"""
    try:
        r, g, b = (int(c) for c in value.split(','))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected R,G,B, got '{value}'")
    if not all(0 <= c <= 255 for c in (r, g, b)):
        raise argparse.ArgumentTypeError(f"Color components must be 0-255, got '{value}'")
    return (b, g, r)


def parse_arguments(argv=None):
    """Parse command line arguments for the histogram viewer"""
    parser = argparse.ArgumentParser(description='Live video histogram viewer')
    parser.add_argument('--index', type=int, default=0, help='Capture device index')
    parser.add_argument('--logo', default=None, help='Logo image composited on the frames')
    parser.add_argument('--logo-enabled', action='store_true', help='Enable the logo at startup')
    parser.add_argument('--grayscale', action='store_true', help='Start in grayscale mode')
    parser.add_argument('--period-ms', type=int, default=33, help='Acquisition period (ms)')
    parser.add_argument('--ink', type=parse_color, default=(255, 255, 255),
                        help='Histogram line color as R,G,B')
    parser.add_argument('--plot', action='store_true', help='Open the histogram plot window')
    parser.add_argument('--autostart', action='store_true', help='Start the camera immediately')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)
    if args.period_ms <= 0:
        parser.error('--period-ms must be positive')
    return args
