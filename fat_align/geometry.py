"""
FAT32 geometry reference: https://en.wikipedia.org/wiki/Design_of_the_FAT_file_system

"""

SECTOR_SIZE = 512
NUM_FATS = 2
# Windows usually reserves at least 12 sectors at the start of the filesystem
MIN_RESERVED_SECTORS = 12
# FAT32 needs 65525 clusters, Windows 2000/XP want 65527 and mkdosfs refuses
# to create filesystems with fewer than 65529
FAT32_MIN_CLUSTERS = 65529
FAT_ENTRY_SIZE = 4
# the first two FAT entries are reserved
FAT_HEADER_SIZE = 2 * FAT_ENTRY_SIZE
MIN_CLUSTER_SIZE = 512
MAX_CLUSTER_SIZE = 32768
# largest common erase block, also aligns to every smaller erase block
DEFAULT_ERASE_BLOCK_SIZE = 4 * 1024 * 1024


def div_round_up(numerator: int, denominator: int) -> int:
    """Number of denominator sized units needed to cover numerator"""
    # true ceiling, so -28760 / 512 is -56 where C style (a + b - 1) / b gives -55
    return -(-numerator // denominator)


def div_round_down(numerator: int, denominator: int) -> int:
    """Number of whole denominator sized units that fit in numerator"""
    return numerator // denominator


def round_up(value: int, multiple: int) -> int:
    """Round value up to the nearest multiple"""
    return div_round_up(value, multiple) * multiple


class Geometry:
    """Geometry of a FAT32 volume on flash media

    This is a convenience class that provides the derived quantities used when
    laying out a FAT32 filesystem over erase blocks. Every value is computed
    from the three sizes passed in; nothing is validated here.

    Attributes:
        sector_size: fixed at 512 bytes
        volume_sectors: volume size in sectors
        erase_block_size: flash erase block size in bytes
        cluster_size: allocation unit size in bytes
        sectors_per_cluster: sectors in one cluster
        sectors_per_erase_block: sectors in one erase block
        clusters_per_erase_block: clusters in one erase block
        volume_clusters: whole clusters in the volume, any partial tail is dropped
    """

    def __init__(
        self,
        volume_sectors: int,
        erase_block_size: int,
        cluster_size: int,
        sector_size: int = SECTOR_SIZE,
    ) -> None:
        self.sector_size = sector_size
        self.volume_sectors = volume_sectors
        self.erase_block_size = erase_block_size
        self.cluster_size = cluster_size
        self.sectors_per_cluster = div_round_down(cluster_size, sector_size)
        self.sectors_per_erase_block = div_round_down(erase_block_size, sector_size)
        self.clusters_per_erase_block = div_round_down(erase_block_size, cluster_size)
        self.volume_clusters = div_round_down(volume_sectors, self.sectors_per_cluster)

    def __repr__(self) -> str:
        return (
            f"Geometry(volume_sectors={self.volume_sectors}, "
            f"erase_block_size={self.erase_block_size}, "
            f"cluster_size={self.cluster_size})"
        )
