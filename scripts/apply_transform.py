"""
Apply a saved transform to points and image geometry

Loads a transform file written by save_transform, maps points given on the
command line or in a .npy file, and optionally projects an image header
(origin / spacing / direction) into the transform's input space.
"""

import sys
import argparse
import numpy as np
from pathlib import Path

# Add the src to the path to import modules
sys.path.append(str(Path(__file__).parent.parent / "src"))

from registration_transforms.core.metadata import ImageMetadata
from registration_transforms.io import load_transform
from registration_transforms.utils.config import load_config
from registration_transforms.utils.logging import setup_logger, configure_logging


def _parse_vector(text):
    return np.array([float(v) for v in text.split(",")])


def main():
    parser = argparse.ArgumentParser(description="Apply a saved transform")
    parser.add_argument("transform_file", type=str, help="YAML file written by save_transform")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults to config/default.yaml)",
    )
    parser.add_argument(
        "--index",
        type=int,
        default=0,
        help="Which transform to use when the file holds several (default: first)",
    )
    parser.add_argument(
        "--point",
        type=str,
        action="append",
        default=[],
        help="Comma separated point coordinates, e.g. --point 1,2,3 (repeatable)",
    )
    parser.add_argument("--points-file", type=str, default=None, help="(N, d) .npy array of points")
    parser.add_argument("--output", type=str, default=None, help="Write mapped points to this .npy file")
    parser.add_argument("--origin", type=str, default=None, help="Image origin to project, e.g. 0,0,0")
    parser.add_argument("--spacing", type=str, default=None, help="Image spacing for --origin")
    args = parser.parse_args()

    cfg = load_config(args.config)
    configure_logging(cfg.logging)
    logger = setup_logger(__name__)

    transforms = load_transform(args.transform_file)
    if not 0 <= args.index < len(transforms):
        logger.error("Transform index %d out of range (file holds %d)", args.index, len(transforms))
        return 1
    transform = transforms[args.index]
    logger.info("Using %s", transform.get_transform_type_as_string())

    points = [_parse_vector(p) for p in args.point]
    if args.points_file:
        points.extend(np.load(args.points_file))
    if points:
        mapped = transform.transform_points(np.vstack(points))
        for src, dst in zip(points, mapped):
            logger.info("%s -> %s", np.array2string(np.asarray(src)), np.array2string(dst))
        if args.output:
            np.save(args.output, mapped)
            logger.info("Saved %d mapped points to %s", len(mapped), args.output)

    if args.origin:
        spacing = _parse_vector(args.spacing) if args.spacing else None
        image = ImageMetadata(origin=_parse_vector(args.origin), spacing=spacing)
        transform.apply_to_image_metadata(image, warn_on_nonlinear=cfg.metadata.warn_on_nonlinear)
        logger.info("Projected origin: %s", np.array2string(image.origin))
        logger.info("Projected spacing: %s", np.array2string(image.spacing))
        logger.info("Projected direction:\n%s", np.array2string(image.direction))

    return 0


if __name__ == "__main__":
    sys.exit(main())
