import PIL.Image
import pytest

import zoom

SMALL = ["--width", "40", "--height", "30", "--max-iterations", "30", "--tile-edge", "16", "--workers", "2"]


def test_single_image(tmp_path):
    output = tmp_path / "out" / "mandelbrot.png"
    zoom.main([*SMALL, "--mode", "image", "--output", str(output)])

    with PIL.Image.open(output) as image:
        assert image.size == (40, 30)
        assert image.mode == "RGB"


def test_gif_and_frame_sequence(tmp_path):
    frame_dir = tmp_path / "frames"
    gif = tmp_path / "zoom.gif"
    zoom.main([*SMALL, "--frames", "3", "--mode", "gif", "--mode", "frames",
               "--output", str(gif), "--frame-dir", str(frame_dir)])

    assert gif.exists()
    assert sorted(p.name for p in frame_dir.iterdir()) == ["frame000.png", "frame001.png", "frame002.png"]


def test_output_suffix_defaults_to_format(tmp_path):
    zoom.main([*SMALL, "--mode", "image", "--format", "bmp", "--output", str(tmp_path / "plain")])
    assert (tmp_path / "plain.bmp").exists()


@pytest.mark.parametrize(
    "args",
    [
        ["--mode", "video"],
        ["--real-min", "1.0", "--real-max", "0.5"],
        ["--width", "0"],
        ["--max-iterations", "0"],
        ["--mode", "frames", "--output", "x.png"],
        ["--mode", "image", "--frame-dir", "frames"],
        ["--colormap", "nosuchmap"],
        ["--device", "/GPU:0"],
    ],
)
def test_invalid_arguments_exit(tmp_path, monkeypatch, args):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit):
        zoom.main([*SMALL, *args])


def test_invalid_inside_color_falls_back_to_black(tmp_path, capsys):
    output = tmp_path / "m.png"
    zoom.main([*SMALL, "--inside-color", "nope", "--output", str(output),
               "--real-min", "-0.3", "--real-max", "0.1", "--imag-min", "-0.2", "--imag-max", "0.2"])

    assert "defaulting to black" in capsys.readouterr().out
    with PIL.Image.open(output) as image:
        assert image.getpixel((20, 15)) == (0, 0, 0)
