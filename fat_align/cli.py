"""
Command line interface for FAT32 erase block alignment

    fat-align 67108864                      # JSON layout for a 32 GiB volume
    fat-align 67108864 --mkfs-args          # options for mkfs.fat
"""
import argparse
import logging
import shlex
import sys
from typing import List, Optional

from fat_align.geometry import DEFAULT_ERASE_BLOCK_SIZE
from fat_align.layout import LayoutError, plan_layout

logger = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fat-align",
        description="Compute a FAT32 layout whose data area starts on an "
        "erase block boundary",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "volume_sectors", type=int, help="volume size in 512 byte sectors"
    )
    parser.add_argument(
        "-e",
        "--erase-block-size",
        type=int,
        default=DEFAULT_ERASE_BLOCK_SIZE,
        help="flash erase block size in bytes (default: %(default)s)",
    )
    parser.add_argument(
        "-c",
        "--cluster-size",
        type=int,
        help="cluster size in bytes (default: largest that fits)",
    )
    parser.add_argument(
        "--no-cluster-align",
        dest="cluster_align",
        action="store_false",
        help="do not keep reserved area and FAT sizes whole clusters",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="fail instead of warning when the layout is undersized",
    )
    parser.add_argument(
        "--mkfs-args",
        action="store_true",
        help="print mkfs.fat options instead of the JSON layout",
    )
    parser.add_argument(
        "--hidden-sectors",
        type=_non_negative_int,
        default=0,
        help="hidden sectors passed to mkfs.fat (default: %(default)s)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log intermediate geometry"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _create_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    try:
        layout = plan_layout(
            args.volume_sectors,
            args.erase_block_size,
            cluster_align=args.cluster_align,
            cluster_size=args.cluster_size,
            strict=args.strict,
        )
    except LayoutError as e:
        logger.error("%s", e)
        return 2

    if args.mkfs_args:
        print(shlex.join(layout.mkfs_args(args.hidden_sectors)))
    else:
        print(layout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
