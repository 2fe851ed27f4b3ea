"""Convert a video to a GIF, printing progress. Press Ctrl+C to cancel.

Usage: python examples/convert_to_gif.py INPUT_VIDEO OUTPUT_GIF [WIDTH]
"""

import logging
import sys
from pathlib import Path

from gifmaker.models import (
    ErrorKind,
    ErrorMessage,
    JobConfig,
    ProgressMessage,
    SuccessMessage,
    VideoDurationMessage,
)
from gifmaker.pipeline.converter import Converter


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if len(sys.argv) < 3:
        print(__doc__)
        return 2

    width = int(sys.argv[3]) if len(sys.argv) > 3 else 200
    job = JobConfig.with_standard_fps(sys.argv[1], width)
    converter, commands, messages = Converter.new_with_channels()
    thread = converter.spawn(job)

    status = 1
    try:
        for message in messages:
            if isinstance(message, VideoDurationMessage):
                print(f"Video duration: {message.duration}")
            elif isinstance(message, ProgressMessage):
                print(f"Progress: {message.fraction * 100:.1f}%")
            elif isinstance(message, SuccessMessage):
                Path(sys.argv[2]).write_bytes(message.data)
                print(f"Wrote {len(message.data)} bytes to {sys.argv[2]}")
                status = 0
            elif isinstance(message, ErrorMessage):
                if message.kind == ErrorKind.CANCELLED:
                    print("Conversion cancelled")
                else:
                    print(f"Conversion failed ({message.kind}): {message.message}")
    except KeyboardInterrupt:
        commands.cancel()
        for message in messages:
            if isinstance(message, ErrorMessage) and message.kind == ErrorKind.CANCELLED:
                print("Conversion cancelled")

    thread.join()
    return status


if __name__ == "__main__":
    sys.exit(main())
