import pytest

from fat_align.cluster import select_cluster_size
from fat_align.geometry import MIN_RESERVED_SECTORS, NUM_FATS
from fat_align.reserved import Alignment, align_reserved_sectors

VOLUME_32G = 64 * 1024 * 1024  # sectors
ERASE_BLOCK = 4 * 1024 * 1024  # 4 MiB


def test_align_cluster_aligned():
    """32 GiB volume, 4 MiB erase blocks, 32 KiB clusters

    The maximal FAT needs 8191 sectors (8192 once cluster aligned), so two
    FATs plus 128 reserved sectors spill into a third erase block.
    """
    alignment = align_reserved_sectors(VOLUME_32G, ERASE_BLOCK, 32768, True)
    assert alignment == Alignment(8192, 3, 4192776, 8192)
    assert alignment.reserved_sectors % 128 == 0
    assert alignment.data_start_sector == 3 * 8192
    assert (alignment.reserved_sectors + 2 * alignment.fat_sectors) % 8192 == 0


def test_align_not_cluster_aligned():
    alignment = align_reserved_sectors(VOLUME_32G, ERASE_BLOCK, 32768)
    reserved_sectors, data_offset_ebs, fat_size_bytes, fat_sectors = alignment
    assert reserved_sectors == 8196
    assert data_offset_ebs == 3
    assert fat_size_bytes == 4192776
    assert fat_sectors == 8190
    assert alignment.data_start_sector % 8192 == 0


def test_align_degenerate_volume():
    """A volume smaller than one erase block is computed, not rejected"""
    alignment = align_reserved_sectors(1000, ERASE_BLOCK, 512)
    assert alignment.data_offset_erase_blocks == 1
    assert alignment.fat_size_bytes == (1000 - 8192) * 4 + 8
    assert alignment.fat_sectors == -56
    assert alignment.reserved_sectors == 8192 + 2 * 56


@pytest.mark.parametrize("cluster_align", [True, False])
@pytest.mark.parametrize(
    "erase_block_size", [4096, 128 * 1024, ERASE_BLOCK, 16 * 1024 * 1024]
)
@pytest.mark.parametrize(
    "volume_sectors", [73721, 139250, 1000000, 4202048, VOLUME_32G, 250000000]
)
def test_align_invariants(volume_sectors, erase_block_size, cluster_align):
    cluster_size = select_cluster_size(volume_sectors, erase_block_size, cluster_align)
    alignment = align_reserved_sectors(
        volume_sectors, erase_block_size, cluster_size, cluster_align
    )
    sectors_per_cluster = cluster_size // 512
    sectors_per_erase_block = erase_block_size // 512

    # data area starts on an erase block boundary
    assert (
        alignment.reserved_sectors + NUM_FATS * alignment.fat_sectors
    ) % sectors_per_erase_block == 0
    assert (
        alignment.data_start_sector
        == alignment.data_offset_erase_blocks * sectors_per_erase_block
    )
    assert alignment.reserved_sectors >= MIN_RESERVED_SECTORS
    # the FAT tracks every data cluster
    assert alignment.fat_sectors * 512 >= alignment.fat_size_bytes
    if cluster_align:
        assert alignment.fat_sectors % sectors_per_cluster == 0
        assert alignment.reserved_sectors % (2 * sectors_per_cluster) == 0


def test_align_is_pure():
    first = align_reserved_sectors(VOLUME_32G, ERASE_BLOCK, 32768, True)
    second = align_reserved_sectors(VOLUME_32G, ERASE_BLOCK, 32768, True)
    assert first == second
