import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from rig_splitter.config import get_settings
from rig_splitter.errors import DirectoryTraversalError
from rig_splitter.services.batch import BatchDriver


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rig-splitter",
        description="Split every skeleton of each scene file in a directory into its own file",
    )
    parser.add_argument(
        "directory_path",
        nargs="?",
        help="Path to directory containing scene files",
    )
    parser.add_argument(
        "rotate_to_face_z",
        nargs="?",
        default="0",
        help="Optional flag (0 or 1) to rotate actors to face Z direction",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args, extra = parser.parse_known_args(argv)
    if extra:
        logger.debug("Ignoring extra arguments: {}", extra)

    if args.directory_path is None:
        parser.print_help()
        return 1

    settings = get_settings()
    rotate_to_face_z = args.rotate_to_face_z == "1"

    driver = BatchDriver(settings=settings, rotate_to_face_z=rotate_to_face_z)
    try:
        report = driver.process_directory(Path(args.directory_path))
    except DirectoryTraversalError as exc:
        logger.error("Error: {}", exc)
        return 1
    finally:
        driver.codec.close()

    logger.info(
        "Processing complete! {} output(s), {} skipped file(s), {} failed export(s)",
        len(report.outputs),
        len(report.skipped_files),
        len(report.failed_exports),
    )
    return 0


def run() -> None:
    """Console script entrypoint."""
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    run()
