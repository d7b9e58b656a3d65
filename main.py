#!/usr/bin/env python3

import os
import logging
import datetime

# Import modules from our package
from histocam.camera import VideoSource, load_asset
from histocam.image_processor import ImageProcessor
from histocam.scheduler import AcquisitionScheduler
from histocam.session import SessionState
from histocam.sink import FrameSink
from histocam.ui.camera_viewer import CameraViewer
from histocam.utils.arg_parser import parse_arguments


def setup_logging(debug=False):
    """Set up logging configuration"""
    # Create logs directory if it doesn't exist
    log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
    os.makedirs(log_dir, exist_ok=True)

    # Create a timestamped log file
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"histocam_{timestamp}.log")

    # Configure logging
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    # Create a logger for the main module
    logger = logging.getLogger('histocam.main')
    logger.info(f"Logging initialized at {logging.getLevelName(log_level)}")
    logger.info(f"Log file: {log_file}")

    return logger


def main(argv=None):
    """Main entry point for the histogram viewer"""
    # Parse command line arguments
    args = parse_arguments(argv)

    # Set up logging
    logger = setup_logging(debug=args.debug)

    scheduler = None
    try:
        session = SessionState(grayscale=args.grayscale)
        if args.logo_enabled:
            logo = load_asset(args.logo)
            if logo is not None:
                session.publish_overlay(logo)
                session.overlay_enabled = True

        processor = ImageProcessor(ink=args.ink)
        sink = FrameSink()
        scheduler = AcquisitionScheduler(VideoSource(), processor, session, sink,
                                         device_index=args.index, period_ms=args.period_ms)

        plot = None
        if args.plot:
            # matplotlib is only needed for the plot window
            from histocam.ui.histogram_plot import HistogramPlot
            plot = HistogramPlot(bins=ImageProcessor.HIST_SIZE)
            plot.toggle()

        logger.info("Creating camera viewer")
        viewer = CameraViewer(scheduler, session, sink, logo_path=args.logo, plot=plot)
        viewer.run(autostart=args.autostart)

    except KeyboardInterrupt:
        logger.info("Program terminated by user")
        print("\nProgram terminated by user")
    except Exception as e:
        logger.exception(f"Unhandled exception: {e}")
        print(f"\nError: {e}")
    finally:
        # Clean up
        if scheduler is not None:
            scheduler.stop()
        logger.info("Application shutdown complete")


if __name__ == "__main__":
    main()
