#!/usr/bin/env python3
"""
Filename utilities for generating output filenames.
"""

import os
import logging

logger = logging.getLogger(__name__)

INPUT_EXTENSIONS = (".txt", ".gpx", ".csv")
MAX_ATTEMPTS = 180


def _reserve(candidate: str) -> bool:
    """Create candidate exclusively; False if it already exists."""
    try:
        with open(candidate, "x"):
            pass
    except FileExistsError:
        return False
    except (PermissionError, OSError) as e:
        logger.error(f"Cannot create file {candidate}: {e}")
        raise ValueError(f"Cannot create file: {e}")
    return True


def generate_output_filename(input_filename: str) -> str:
    """
    Generates an output HTML filename and reserves it by creating an empty file.

    Strategy:
    1. Drop a known input extension (.txt, .gpx, .csv; case-insensitive)
    2. Append " map.html"
    3. If taken, try " map (1).html", " map (2).html", ... up to 180

    Args:
        input_filename: Path to the input shapes file

    Returns:
        Output filename that has been created as an empty file to reserve it

    Raises:
        RuntimeError: If no available filename found after 180 attempts
        ValueError: If a filename cannot be created
    """
    input_dir = os.path.dirname(input_filename)
    base_name, extension = os.path.splitext(os.path.basename(input_filename))
    if extension.lower() not in INPUT_EXTENSIONS:
        base_name += extension

    base_output = os.path.join(input_dir, base_name + " map")

    candidates = [base_output + ".html"] + [
        f"{base_output} ({i}).html" for i in range(1, MAX_ATTEMPTS + 1)
    ]
    for candidate in candidates:
        if _reserve(candidate):
            return candidate

    logger.error(
        f"Could not find an available filename after {MAX_ATTEMPTS} attempts. "
        f"Please clean up your output directory or specify --output explicitly."
    )
    raise RuntimeError(f"No available filename found after {MAX_ATTEMPTS} attempts")
