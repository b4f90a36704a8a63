"""
Reserved sector alignment for FAT32 on flash media

A FAT32 filesystem is laid out as

    [ reserved sectors ][ FAT #1 ][ FAT #2 ][ data area ]

and the data area should start on an erase block boundary. mkdosfs can only
align structures to clusters, so the reserved area is used as padding: size the
FATs, then pad with reserved sectors up to the next erase block boundary.

FAT size depends on the data area size (4 bytes per data cluster plus 8 bytes
of header), which in turn depends on the FAT size. Treating the minimum
reserved sectors and the FAT headers as overhead, the volume is divided into
chunks of one cluster plus its 4 bytes in every FAT:

    [reserved][8 bytes FAT#1][8 bytes FAT#2][chunk][chunk][...]

The number of chunks that fit gives the largest possible FAT. The smallest
number of erase blocks holding two maximal FATs and the minimum reserved
sectors becomes the data area offset, which fixes the real data area, the real
(no larger) FAT size, and finally the reserved sectors left over in the
offset erase blocks.
"""
import logging
from typing import NamedTuple

from fat_align.geometry import (
    FAT_ENTRY_SIZE,
    FAT_HEADER_SIZE,
    MIN_RESERVED_SECTORS,
    NUM_FATS,
    Geometry,
    div_round_up,
    round_up,
)

logger = logging.getLogger(__name__)


class Alignment(NamedTuple):
    """Aligned FAT32 layout

    Attributes:
        reserved_sectors: reserved sector count to pass to mkfs
        data_offset_erase_blocks: erase blocks holding the reserved area and FATs
        fat_size_bytes: bytes used by one FAT
        fat_sectors: sectors allocated to one FAT
    """

    reserved_sectors: int
    data_offset_erase_blocks: int
    fat_size_bytes: int
    fat_sectors: int

    @property
    def data_start_sector(self) -> int:
        """First sector of the data area relative to the volume start"""
        return self.reserved_sectors + NUM_FATS * self.fat_sectors


def _fat_sectors(fat_size_bytes: int, geometry: Geometry, cluster_align: bool) -> int:
    fat_sectors = div_round_up(fat_size_bytes, geometry.sector_size)
    if cluster_align:
        fat_sectors = round_up(fat_sectors, geometry.sectors_per_cluster)
    return fat_sectors


def align_reserved_sectors(
    volume_sectors: int,
    erase_block_size: int,
    cluster_size: int,
    cluster_align: bool = False,
) -> Alignment:
    """Compute the reserved sector count that aligns the data area

    Args:
        volume_sectors: volume size in 512 byte sectors
        erase_block_size: flash erase block size in bytes
        cluster_size: cluster size in bytes
        cluster_align: keep the reserved area and FAT sizes whole clusters

    Returns:
        Alignment with the reserved sector count and the FAT geometry used
    """
    geometry = Geometry(volume_sectors, erase_block_size, cluster_size)

    reserved_sectors = MIN_RESERVED_SECTORS
    if cluster_align:
        # With f the FAT size, r the reserved size and e the erase block size
        # in clusters, 2f + r = eN. e is a power of two, so r must be even.
        reserved_sectors = round_up(
            reserved_sectors, 2 * geometry.sectors_per_cluster
        )

    # largest FAT, rounded up to a whole chunk
    chunk_size = cluster_size + NUM_FATS * FAT_ENTRY_SIZE
    area_bytes = (
        geometry.volume_clusters * geometry.sectors_per_cluster - reserved_sectors
    ) * geometry.sector_size - FAT_HEADER_SIZE * NUM_FATS
    max_fat_size_bytes = (
        FAT_ENTRY_SIZE * div_round_up(area_bytes, chunk_size) + FAT_HEADER_SIZE
    )
    max_fat_sectors = _fat_sectors(max_fat_size_bytes, geometry, cluster_align)

    data_offset_ebs = div_round_up(
        NUM_FATS * max_fat_sectors + reserved_sectors,
        geometry.sectors_per_erase_block,
    )
    logger.debug(
        "maximal FAT is %d bytes (%d sectors), data area offset %d erase blocks",
        max_fat_size_bytes,
        max_fat_sectors,
        data_offset_ebs,
    )

    # actual FAT once whole erase blocks are set aside for it
    data_clusters = (
        geometry.volume_clusters - data_offset_ebs * geometry.clusters_per_erase_block
    )
    fat_size_bytes = data_clusters * FAT_ENTRY_SIZE + FAT_HEADER_SIZE
    fat_sectors = _fat_sectors(fat_size_bytes, geometry, cluster_align)

    reserved_sectors = (
        data_offset_ebs * geometry.sectors_per_erase_block - NUM_FATS * fat_sectors
    )
    logger.debug(
        "FAT is %d bytes (%d sectors), %d reserved sectors",
        fat_size_bytes,
        fat_sectors,
        reserved_sectors,
    )
    return Alignment(reserved_sectors, data_offset_ebs, fat_size_bytes, fat_sectors)
