import logging

from likwid_bench.plot import render_png


def test_render_png_writes_image(tmp_path):
    png = tmp_path / "chart.png"
    assert render_png("n,a (m),b (m)\n1,2,3\n2,4,\n3,6,\n", png)
    assert png.read_bytes().startswith(b"\x89PNG")


def test_render_png_skips_x_only_table(tmp_path, caplog):
    png = tmp_path / "chart.png"
    with caplog.at_level(logging.WARNING):
        assert not render_png("n\n1\n2\n", png)

    assert not png.exists()
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1
