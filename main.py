"""CLI entrypoint for the webcam timelapse tool."""

import sys

from webcam_timelapse.cli import main


if __name__ == "__main__":
    sys.exit(main())
