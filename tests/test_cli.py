import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import cv2
import numpy as np
import pytest

from threshold_lab.cli import main as cli_main


@pytest.fixture
def input_image(tmp_path):
    img = np.zeros((40, 60, 3), dtype=np.uint8)
    cv2.rectangle(img, (10, 10), (50, 30), (230, 230, 230), -1)
    img[0, :] = 180  # bright top border row
    path = tmp_path / "test.png"
    cv2.imwrite(str(path), img)
    return path


@pytest.mark.parametrize("method", ["binary", "otsu", "adaptive"])
def test_threshold_cli_output_dir(tmp_path, input_image, method):
    outdir = tmp_path / "cli_out"
    code = cli_main(["threshold", "--input", str(input_image), "--output-dir", str(outdir),
                     "--method", method, "--thresh", "100"])
    assert code == 0
    p = outdir / "thresholded-image.png"
    assert p.exists()
    img = cv2.imread(str(p), cv2.IMREAD_UNCHANGED)
    assert img is not None
    assert img.shape == (40, 60, 3)
    assert img[20, 30].tolist() == [255, 255, 255]
    assert img[35, 5].tolist() == [0, 0, 0]
    if method == "adaptive":
        # border row is copied through untouched
        assert img[0, 5].tolist() == [180, 180, 180]
    else:
        assert set(np.unique(img)) <= {0, 255}


def test_threshold_cli_fill_border(tmp_path, input_image):
    outp = tmp_path / "filled.png"
    code = cli_main(["threshold", "--input", str(input_image), "--output", str(outp),
                     "--method", "adaptive", "--fill-border"])
    assert code == 0
    img = cv2.imread(str(outp), cv2.IMREAD_UNCHANGED)
    assert set(np.unique(img)) <= {0, 255}


@pytest.mark.parametrize("fmt, name", [("jpg", "thresholded-image.jpg"),
                                       ("jpeg", "thresholded-image.jpg"),
                                       ("webp", "thresholded-image.webp")])
def test_threshold_cli_formats(tmp_path, input_image, fmt, name):
    code = cli_main(["threshold", "--input", str(input_image), "--output-dir", str(tmp_path),
                     "--format", fmt])
    assert code == 0
    assert cv2.imread(str(tmp_path / name)) is not None


def test_threshold_cli_format_from_suffix(tmp_path, input_image):
    outp = tmp_path / "result.jpg"
    assert cli_main(["threshold", "--input", str(input_image), "--output", str(outp)]) == 0
    assert outp.read_bytes()[:2] == b"\xff\xd8"


def test_threshold_cli_clamps_threshold(tmp_path, input_image):
    outp = tmp_path / "black.png"
    code = cli_main(["threshold", "--input", str(input_image), "--output", str(outp), "--thresh", "999"])
    assert code == 0
    img = cv2.imread(str(outp), cv2.IMREAD_GRAYSCALE)
    assert int(img.max()) == 0


def test_threshold_cli_missing_input(tmp_path, capsys):
    code = cli_main(["threshold", "--input", str(tmp_path / "nope.png"), "--output-dir", str(tmp_path)])
    assert code == 2
    assert "Failed to read" in capsys.readouterr().out


def test_threshold_cli_unknown_suffix(tmp_path, input_image):
    code = cli_main(["threshold", "--input", str(input_image), "--output", str(tmp_path / "out.gifx")])
    assert code == 3


def test_threshold_cli_rejects_unknown_method(input_image, tmp_path):
    with pytest.raises(SystemExit):
        cli_main(["threshold", "--input", str(input_image), "--output-dir", str(tmp_path),
                  "--method", "sauvola"])


def test_stats_cli(input_image, capsys):
    code = cli_main(["stats", "--input", str(input_image), "--thresh", "100"])
    assert code == 0
    out = capsys.readouterr().out
    assert "mean:" in out
    assert "otsu:" in out
    assert "40" in out and "60" in out


def test_threshold_cli_rejects_suffix_format_mismatch(tmp_path, input_image, capsys):
    outp = tmp_path / "out.png"
    code = cli_main(["threshold", "--input", str(input_image), "--output", str(outp), "--format", "jpg"])
    assert code == 2
    assert not outp.exists()
    assert "does not match" in capsys.readouterr().out


def test_threshold_cli_format_matches_suffix_alias(tmp_path, input_image):
    outp = tmp_path / "out.jpeg"
    code = cli_main(["threshold", "--input", str(input_image), "--output", str(outp), "--format", "jpg"])
    assert code == 0
    assert outp.read_bytes()[:2] == b"\xff\xd8"
