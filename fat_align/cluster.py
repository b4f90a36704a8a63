import logging

from fat_align.geometry import (
    FAT32_MIN_CLUSTERS,
    MAX_CLUSTER_SIZE,
    MIN_CLUSTER_SIZE,
    MIN_RESERVED_SECTORS,
    NUM_FATS,
    SECTOR_SIZE,
    div_round_down,
    div_round_up,
    round_up,
)

logger = logging.getLogger(__name__)


def minimum_fs_sectors(
    cluster_size: int, erase_block_size: int, cluster_align: bool = False
) -> int:
    """Smallest volume, in sectors, that holds a minimal FAT32 at cluster_size

    The smallest data area we create is FAT32_MIN_CLUSTERS clusters, which
    needs a FAT of 512 sectors. The reserved sectors plus both FATs are padded
    out to whole erase blocks in front of the data area.
    """
    sectors_per_cluster = div_round_down(cluster_size, SECTOR_SIZE)
    sectors_per_erase_block = div_round_down(erase_block_size, SECTOR_SIZE)

    reserved_sectors = MIN_RESERVED_SECTORS
    if cluster_align:
        reserved_sectors = round_up(reserved_sectors, sectors_per_cluster)
    data_offset_ebs = div_round_up(
        reserved_sectors + NUM_FATS * 512, sectors_per_erase_block
    )
    return (
        FAT32_MIN_CLUSTERS * sectors_per_cluster
        + data_offset_ebs * sectors_per_erase_block
    )


def select_cluster_size(
    volume_sectors: int, erase_block_size: int, cluster_align: bool = False
) -> int:
    """Select the largest cluster size for a FAT32 volume

    Starts at the largest "normal" cluster size of 32 KB and halves until the
    volume is big enough for a FAT32 data area of that cluster size. When no
    size fits, the smallest cluster size is returned anyway and the resulting
    filesystem may hold fewer than FAT32_MIN_CLUSTERS clusters.

    Args:
        volume_sectors: volume size in 512 byte sectors
        erase_block_size: flash erase block size in bytes
        cluster_align: round the reserved area up to whole clusters

    Returns:
        cluster size in bytes
    """
    cluster_size = MAX_CLUSTER_SIZE
    while cluster_size >= MIN_CLUSTER_SIZE:
        minimum = minimum_fs_sectors(cluster_size, erase_block_size, cluster_align)
        if volume_sectors >= minimum:
            return cluster_size
        logger.debug(
            "cluster size %d needs %d sectors, volume has %d",
            cluster_size,
            minimum,
            volume_sectors,
        )
        cluster_size //= 2

    logger.debug(
        "no cluster size fits %d sectors, falling back to %d",
        volume_sectors,
        MIN_CLUSTER_SIZE,
    )
    return MIN_CLUSTER_SIZE
