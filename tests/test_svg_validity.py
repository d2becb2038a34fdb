import json
import xml.etree.ElementTree as ET

import pytest

import gridpaper_svg as gen
from gridpaper_geometry import Box

NS = "{http://www.w3.org/2000/svg}"


def _parse(svg):
    return ET.fromstring(svg.encode("utf-8"))


def _group(root, gid):
    return next(g for g in root.iter(f"{NS}g") if g.get("id") == gid)


def test_svg_is_valid_xml(tmp_path):
    # Smoke test: generator should output parseable XML.
    res = gen.generate_svg({"diagonal": True, "thirds": True, "inner_box": True, "title": "middle", "title_length": 4})
    out = tmp_path / "out.svg"
    out.write_text(res["svg"], encoding="utf-8")
    ET.parse(str(out))
    json.dumps(res)


def test_root_carries_mm_units_and_matching_viewbox():
    res = gen.generate_svg({"page_width": 148, "page_height": 210})
    assert res["svg"].startswith('<?xml version="1.0" encoding="UTF-8"?>')
    root = _parse(res["svg"])
    assert root.get("width") == "148mm"
    assert root.get("height") == "210mm"
    assert root.get("viewBox") == "0 0 148 210"


def test_grid_uses_one_reference_per_cell():
    res = gen.generate_svg({})
    layout = res["layout"]
    uses = list(_parse(res["svg"]).iter(f"{NS}use"))
    assert len(uses) == layout["n_rows"] * layout["n_cell_columns"]
    assert layout["n_rows"] > 0 and layout["n_columns"] > 0
    last = [u for u in uses if u.get("href") == "#cell-true"]
    assert len(last) == layout["n_cell_columns"]


def test_shared_row_border_is_dashed_guide_line():
    p = gen.SheetParams(cross=False)
    _, plan = gen.build_layout(p)
    inner = gen.render_cell(plan.cell, plan.guides, is_last=False, stroke="#cc0000", guide="#e68080")
    last = gen.render_cell(plan.cell, plan.guides, is_last=True, stroke="#cc0000", guide="#e68080")
    assert inner.count('stroke="#e68080"') == 1
    assert "stroke-dasharray" in inner
    assert "#e68080" not in last


def test_ruled_draws_columns_not_cells():
    res = gen.generate_svg({"style": "ruled", "cell_margin": [2.0]})
    root = _parse(res["svg"])
    assert not list(root.iter(f"{NS}use"))
    cols = list(_group(root, "COLUMNS").iter(f"{NS}rect"))
    assert len(cols) == res["layout"]["n_cell_columns"]
    assert res["layout"]["rows"]["boundary"] == pytest.approx(12.6)


def test_style_none_draws_only_frame():
    root = _parse(gen.generate_svg({"style": "none"})["svg"])
    assert not list(root.iter(f"{NS}use"))
    assert not list(root.iter(f"{NS}line"))
    assert len(list(root.iter(f"{NS}rect"))) == 1
    assert _group(root, "FRAME") is not None


def test_title_column_rendered():
    res = gen.generate_svg({"title": "start", "title_length": 5})
    assert res["layout"]["title_index"] == 0
    root = _parse(res["svg"])
    assert len(list(_group(root, "TITLE").iter(f"{NS}rect"))) == 1


def test_degenerate_box_renders_empty_group():
    box = gen.box_with_outer_size(0.2, 5.0, stroke_width=0.5)
    assert gen.render_box(box) == "<g/>"
    assert gen.render_box(Box(stroke_width=0.5)) == "<g/>"


def test_empty_layout_still_valid_svg():
    res = gen.generate_svg({"page_width": 20, "page_height": 20, "page_padding": [10]})
    assert res["layout"]["frame"] is None
    assert any(w["code"] == "NOTHING_FITS" for w in res["warnings"])
    _parse(res["svg"])


def test_bad_params_rejected():
    with pytest.raises(TypeError):
        gen.generate_svg(["not", "a", "dict"])
    with pytest.raises(ValueError):
        gen.generate_svg({"style": "dotted"})
    with pytest.raises(ValueError):
        gen.generate_svg({"title": "top"})
    with pytest.raises(ValueError):
        gen.generate_svg({"stroke_color": "red"})
    with pytest.raises(ValueError):
        gen.generate_svg({"cell_margin": [1, 2, 3, 4, 5]})


def test_cli_writes_svg(tmp_path, capsys):
    out = tmp_path / "sheet.svg"
    assert gen.main(["--out", str(out), "--title", "end", "--diagonal"]) == 0
    ET.parse(str(out))
    assert "OK" in capsys.readouterr().out


def test_cli_reads_params_file(tmp_path):
    params = tmp_path / "case.json"
    params.write_text(json.dumps({"style": "ruled", "page_width": 100, "page_height": 100}), encoding="utf-8")
    out = tmp_path / "sheet.svg"
    assert gen.main(["--out", str(out), "--params", str(params)]) == 0
    root = ET.parse(str(out)).getroot()
    assert root.get("width") == "100mm"


def test_style_none_with_title_draws_only_frame():
    res = gen.generate_svg({"style": "none", "title": "start", "title_length": 3})
    assert res["layout"]["title_index"] == 0
    root = _parse(res["svg"])
    assert len(list(root.iter(f"{NS}rect"))) == 1
    assert not any(g.get("id") == "TITLE" for g in root.iter(f"{NS}g"))


def _cell_elements(cell, guides, is_last=True):
    # Rendered cell fragments carry no namespace.
    return ET.fromstring(gen.render_cell(cell, guides, is_last=is_last, stroke="#cc0000", guide="#e68080"))


def _guide_lines(root):
    return [e for e in root.iter("line") if e.get("stroke") == "#e68080"]


def _coords(e):
    return tuple(float(e.get(k)) for k in ("x1", "y1", "x2", "y2"))


def test_thirds_lines_at_one_and_two_thirds():
    cell = Box(12.0, 12.0, stroke_width=0.0)
    lines = _guide_lines(_cell_elements(cell, gen.GuideLines(cross=False, thirds=True)))
    assert sorted(_coords(e) for e in lines) == [
        (0.0, 4.0, 12.0, 4.0),
        (0.0, 8.0, 12.0, 8.0),
        (4.0, 0.0, 4.0, 12.0),
        (8.0, 0.0, 8.0, 12.0),
    ]
    for e in lines:
        assert float(e.get("stroke-dasharray")) == pytest.approx(12.0 / 19, abs=1e-6)
        assert e.get("stroke-dashoffset") == e.get("stroke-dasharray")


def test_diagonals_use_diagonal_dash_count():
    cell = Box(12.0, 12.0, stroke_width=0.0)
    lines = _guide_lines(_cell_elements(cell, gen.GuideLines(cross=False, diagonal=True)))
    assert sorted(_coords(e) for e in lines) == [(0.0, 0.0, 12.0, 12.0), (0.0, 12.0, 12.0, 0.0)]
    for e in lines:
        assert float(e.get("stroke-dasharray")) == pytest.approx(12.0 * 2 ** 0.5 / 25, abs=1e-6)


def test_inner_box_centred_with_half_side():
    cell = Box(12.0, 8.0, stroke_width=0.0)
    root = _cell_elements(cell, gen.GuideLines(cross=False, inner_box=True))
    rects = [e for e in root.iter("rect") if e.get("stroke") == "#e68080"]
    assert len(rects) == 1
    r = rects[0]
    assert [float(r.get(k)) for k in ("x", "y", "width", "height")] == pytest.approx([4.0, 2.0, 4.0, 4.0])
    assert float(r.get("stroke-dasharray")) == pytest.approx(4.0 / 9.5, abs=1e-6)


def test_enclosed_cell_draws_one_solid_rect_without_separator():
    cell = Box(12.0, 12.0, margin=gen.SpacingRectangle(2.0), stroke_width=0.5)
    root = _cell_elements(cell, gen.GuideLines(cross=False), is_last=False)
    assert not _guide_lines(root)
    assert not list(root.iter("line"))
    rects = list(root.iter("rect"))
    assert len(rects) == 1
    r = rects[0]
    assert r.get("stroke-dasharray") is None
    assert [float(r.get(k)) for k in ("x", "y", "width", "height")] == pytest.approx([0.25, 0.25, 12.5, 12.5])


def test_enclosed_layout_summary():
    assert gen.generate_svg({"cell_margin": [2]})["layout"]["enclosed"] == {"rows": True, "columns": True}
    assert gen.generate_svg({"cell_margin": [0, 2]})["layout"]["enclosed"] == {"rows": False, "columns": True}
    assert gen.generate_svg({"cell_margin": [2, 0]})["layout"]["enclosed"] == {"rows": True, "columns": False}


def test_spacing_given_as_text():
    assert gen.SheetParams.from_dict({"page_padding": "10"}).page_padding == [10.0]
    assert gen.SheetParams.from_dict({"cell_margin": "0 2"}).cell_margin == [0.0, 2.0]
    assert gen.SheetParams.from_dict({"cell_margin": "1,2,3"}).cell_margin == [1.0, 2.0, 3.0]
    with pytest.raises(ValueError):
        gen.SheetParams.from_dict({"page_padding": "ten"})
    with pytest.raises(TypeError):
        gen.SheetParams.from_dict({"page_padding": True})


def test_guide_flags_coerced_strictly():
    p = gen.SheetParams.from_dict({"cross": "false", "diagonal": "true", "thirds": 1, "inner_box": "no"})
    assert (p.cross, p.diagonal, p.thirds, p.inner_box) == (False, True, True, False)
    with pytest.raises(ValueError):
        gen.SheetParams.from_dict({"cross": "maybe"})
    with pytest.raises(ValueError):
        gen.SheetParams.from_dict({"bottom_separator": 2})
