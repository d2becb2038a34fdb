#!/usr/bin/env python3

import os
import sys

# Allow running this script directly (sys.path[0] is examples/).
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import gridpaper_svg as gen


def generate(out_dir: str):
    os.makedirs(out_dir, exist_ok=True)

    examples = [
        (
            "a4_cross_grid.svg",
            {
                "cell_width": 12,
                "cell_margin": [0, 2],
                "cross": True,
            },
        ),
        (
            "a4_full_guides.svg",
            {
                "cell_width": 15,
                "cell_margin": [2],
                "cross": True,
                "diagonal": True,
                "thirds": False,
                "inner_box": True,
            },
        ),
        (
            "a4_ruled_title_middle.svg",
            {
                "style": "ruled",
                "cell_width": 10,
                "cell_margin": [0, 3],
                "title": "middle",
                "title_length": 6,
            },
        ),
        (
            "a5_thirds_title_start.svg",
            {
                "page_width": 148,
                "page_height": 210,
                "page_padding": [8],
                "cell_width": 14,
                "cross": False,
                "thirds": True,
                "title": "start",
                "title_length": 4,
                "stroke_color": "#2a6f2a",
            },
        ),
    ]

    for filename, params in examples:
        res = gen.generate_svg(params)
        with open(os.path.join(out_dir, filename), "w", encoding="utf-8") as f:
            f.write(res["svg"])
        layout = res["layout"]
        print(f"{filename}: {layout['n_rows']} rows x {layout['n_columns']} columns")


if __name__ == "__main__":
    generate(os.path.join(os.path.dirname(__file__)))
