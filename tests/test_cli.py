import json

import pytest

from fat_align import cli

VOLUME_32G = str(64 * 1024 * 1024)


def test_cli_json(capsys):
    assert cli.main([VOLUME_32G]) == 0
    layout_d = json.loads(capsys.readouterr().out)
    assert layout_d["cluster_size"] == 32768
    assert layout_d["reserved_sectors"] == 8192
    assert layout_d["cluster_align"] is True


def test_cli_mkfs_args(capsys):
    assert cli.main([VOLUME_32G, "--mkfs-args"]) == 0
    assert capsys.readouterr().out.strip() == "-F 32 -s 64 -h 0 -R 8192"


def test_cli_no_cluster_align(capsys):
    assert cli.main([VOLUME_32G, "--no-cluster-align", "--mkfs-args"]) == 0
    assert capsys.readouterr().out.strip() == "-F 32 -s 64 -h 0 -R 8196"


def test_cli_options(capsys):
    args = [VOLUME_32G, "-e", "131072", "-c", "4096", "--hidden-sectors", "8"]
    assert cli.main(args + ["--mkfs-args"]) == 0
    out = capsys.readouterr().out.split()
    assert out[:6] == ["-F", "32", "-s", "8", "-h", "8"]
    assert int(out[7]) % 16 == 0


def test_cli_invalid_geometry(caplog):
    assert cli.main([VOLUME_32G, "--erase-block-size", "1000"]) == 2
    assert "erase block size" in caplog.text


def test_cli_strict(caplog, capsys):
    assert cli.main(["20000", "--strict"]) == 2
    assert capsys.readouterr().out == ""
    assert "65529" in caplog.text
    assert cli.main(["20000"]) == 0


def test_cli_negative_hidden_sectors(capsys):
    with pytest.raises(SystemExit) as e:
        cli.main([VOLUME_32G, "--mkfs-args", "--hidden-sectors=-1"])
    assert e.value.code == 2
    assert "must not be negative" in capsys.readouterr().err
