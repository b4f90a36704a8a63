import json
import logging
from typing import List, Optional

from fat_align.cluster import select_cluster_size
from fat_align.geometry import (
    DEFAULT_ERASE_BLOCK_SIZE,
    FAT32_MIN_CLUSTERS,
    MAX_CLUSTER_SIZE,
    MIN_CLUSTER_SIZE,
    MIN_RESERVED_SECTORS,
    SECTOR_SIZE,
    Geometry,
    div_round_down,
)
from fat_align.reserved import Alignment, align_reserved_sectors

logger = logging.getLogger(__name__)


class LayoutError(Exception):
    """Base class for FAT32 layout errors"""


class InvalidGeometryError(LayoutError):
    """Volume, erase block or cluster size cannot describe a FAT32 volume"""


class VolumeTooSmallError(LayoutError):
    """Data area holds fewer clusters than FAT32 requires"""


class DegenerateAlignmentError(LayoutError):
    """Aligned reserved area and FATs leave no room for data"""


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def _check_size(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidGeometryError(f"{name} must be an integer: {value!r}")
    if value <= 0 or value % SECTOR_SIZE:
        raise InvalidGeometryError(
            f"{name} must be a positive multiple of {SECTOR_SIZE}: {value}"
        )
    if not _is_power_of_two(value):
        raise InvalidGeometryError(f"{name} must be a power of two: {value}")


def check_geometry(
    volume_sectors: int, erase_block_size: int, cluster_size: Optional[int] = None
) -> None:
    """Reject inputs the layout computation cannot handle

    Raises:
        InvalidGeometryError: if any size is unusable
    """
    if isinstance(volume_sectors, bool) or not isinstance(volume_sectors, int):
        raise InvalidGeometryError(
            f"volume size must be an integer: {volume_sectors!r}"
        )
    if volume_sectors <= 0:
        raise InvalidGeometryError(f"volume size must be positive: {volume_sectors}")
    _check_size("erase block size", erase_block_size)
    if cluster_size is not None:
        _check_size("cluster size", cluster_size)
        if not MIN_CLUSTER_SIZE <= cluster_size <= MAX_CLUSTER_SIZE:
            raise InvalidGeometryError(
                f"cluster size must be between {MIN_CLUSTER_SIZE} and "
                f"{MAX_CLUSTER_SIZE}: {cluster_size}"
            )


class FatLayout:
    """Aligned FAT32 layout of a volume

    Holds the chosen cluster size and the aligned reserved area together with
    any problems found with the result. A layout with problems is still
    returned so callers can decide whether a best effort layout is acceptable.

    Attributes:
        geometry: derived volume geometry
        alignment: reserved area and FAT geometry
        cluster_align: whether cluster alignment was applied
        data_clusters: clusters in the aligned data area
        problems: LayoutError instances describing what is wrong with the layout
    """

    def __init__(
        self, geometry: Geometry, alignment: Alignment, cluster_align: bool = True
    ) -> None:
        self.geometry = geometry
        self.alignment = alignment
        self.cluster_align = cluster_align
        self.data_clusters = div_round_down(
            geometry.volume_clusters * geometry.sectors_per_cluster
            - alignment.data_start_sector,
            geometry.sectors_per_cluster,
        )
        self.problems: List[LayoutError] = []
        if alignment.reserved_sectors < MIN_RESERVED_SECTORS:
            self.problems.append(
                DegenerateAlignmentError(
                    f"reserved area has {alignment.reserved_sectors} sectors, "
                    f"FAT32 needs at least {MIN_RESERVED_SECTORS}"
                )
            )
        if self.data_clusters <= 0:
            self.problems.append(
                DegenerateAlignmentError(
                    f"{geometry.volume_clusters} clusters do not cover "
                    f"{alignment.data_offset_erase_blocks} erase blocks of "
                    f"reserved sectors and FATs"
                )
            )
        if self.data_clusters < FAT32_MIN_CLUSTERS:
            self.problems.append(
                VolumeTooSmallError(
                    f"data area has {self.data_clusters} clusters of "
                    f"{geometry.cluster_size} bytes, FAT32 needs "
                    f"{FAT32_MIN_CLUSTERS}"
                )
            )

    @property
    def cluster_size(self) -> int:
        return self.geometry.cluster_size

    @property
    def sectors_per_cluster(self) -> int:
        return self.geometry.sectors_per_cluster

    @property
    def reserved_sectors(self) -> int:
        return self.alignment.reserved_sectors

    @property
    def fat_sectors(self) -> int:
        return self.alignment.fat_sectors

    @property
    def valid(self) -> bool:
        return not self.problems

    @property
    def warnings(self) -> List[str]:
        return [str(problem) for problem in self.problems]

    def validate(self) -> None:
        """Raise the first problem found with the layout

        Raises:
            DegenerateAlignmentError: if there is no data area or the reserved
                area is below MIN_RESERVED_SECTORS
            VolumeTooSmallError: if the data area is below the FAT32 minimum
        """
        if self.problems:
            raise self.problems[0]

    def mkfs_args(self, hidden_sectors: int = 0) -> List[str]:
        """mkfs.fat options that create this layout

        Raises:
            InvalidGeometryError: if hidden_sectors is negative
        """
        if hidden_sectors < 0:
            raise InvalidGeometryError(
                f"hidden sectors must not be negative: {hidden_sectors}"
            )
        return [
            "-F",
            "32",
            "-s",
            str(self.sectors_per_cluster),
            "-h",
            str(hidden_sectors),
            "-R",
            str(self.reserved_sectors),
        ]

    def as_dict(self) -> dict:
        return {
            "volume_sectors": self.geometry.volume_sectors,
            "erase_block_size": self.geometry.erase_block_size,
            "cluster_size": self.cluster_size,
            "cluster_align": self.cluster_align,
            "sectors_per_cluster": self.sectors_per_cluster,
            "reserved_sectors": self.reserved_sectors,
            "data_offset_erase_blocks": self.alignment.data_offset_erase_blocks,
            "fat_size_bytes": self.alignment.fat_size_bytes,
            "fat_sectors": self.fat_sectors,
            "data_start_sector": self.alignment.data_start_sector,
            "data_clusters": self.data_clusters,
            "valid": self.valid,
            "warnings": self.warnings,
        }

    def __repr__(self) -> str:
        return json.dumps(self.as_dict(), indent=2)


def plan_layout(
    volume_sectors: int,
    erase_block_size: int = DEFAULT_ERASE_BLOCK_SIZE,
    cluster_align: bool = True,
    cluster_size: Optional[int] = None,
    strict: bool = False,
) -> FatLayout:
    """Select a cluster size and align the data area of a FAT32 volume

    Args:
        volume_sectors: volume size in 512 byte sectors
        erase_block_size: flash erase block size in bytes (default 4 MiB)
        cluster_align: keep the reserved area and FAT sizes whole clusters
        cluster_size: use this cluster size instead of selecting one
        strict: raise instead of recording layout problems

    The FAT32 minimum is checked against the final data area, which the
    aligned FATs and reserved area may shrink a little below what the cluster
    size selection assumed. Near a selection threshold, and with small erase
    blocks in particular, a selected cluster size can therefore still fail in
    strict mode.

    Raises:
        InvalidGeometryError: if the inputs are unusable
        DegenerateAlignmentError: in strict mode, if there is no data area or
            the reserved area is too small
        VolumeTooSmallError: in strict mode, if the data area is too small
    """
    check_geometry(volume_sectors, erase_block_size, cluster_size)
    if cluster_size is None:
        cluster_size = select_cluster_size(
            volume_sectors, erase_block_size, cluster_align
        )
    alignment = align_reserved_sectors(
        volume_sectors, erase_block_size, cluster_size, cluster_align
    )
    layout = FatLayout(
        Geometry(volume_sectors, erase_block_size, cluster_size),
        alignment,
        cluster_align,
    )
    for problem in layout.problems:
        logger.warning("%s", problem)
    if strict:
        layout.validate()
    return layout
