"""
Writes a TorchScript stand-in for the trained shape model.

The module reproduces the two-column output layout of the real network
(column 1 = shape factor) with a closed-form field: linear over the depth,
parabolic along the span. Useful to run the viewer without the trained
model.

Usage:
    $ python assets/export_analytic_model.py [output.pt]
"""
import json
import os
import sys

import torch
import torch.nn as nn

ASSETS_DIR = os.path.dirname(os.path.abspath(__file__))
SCALER_PATH = os.path.join(ASSETS_DIR, "scalers_default.json")
OUTPUT_PATH = os.path.join(ASSETS_DIR, "beam_shape_model.pt")

BEAM_LENGTH_MM = 1050.0
BEAM_HEIGHT_MM = 300.0


class AnalyticShapeModel(nn.Module):
    def __init__(self, scalers: dict, length_mm: float, height_mm: float) -> None:
        super().__init__()
        self.x_mean = scalers["x"]["mean"]
        self.x_scale = scalers["x"]["scale"]
        self.y_mean = scalers["y"]["mean"]
        self.y_scale = scalers["y"]["scale"]
        self.half_length = length_mm / 2.0
        self.half_height = height_mm / 2.0

    def forward(self, features: torch.Tensor) -> torch.Tensor:
        x = features[:, 0] * self.x_scale + self.x_mean
        y = features[:, 1] * self.y_scale + self.y_mean

        # Mid-span at x = 0, supports at +-L/2
        xi = torch.clamp(1.0 - torch.abs(x) / self.half_length, 0.0, 1.0)
        span = 1.0 - (1.0 - xi) ** 2
        depth = torch.clamp(torch.abs(y) / self.half_height, 0.0, 1.0)

        shape = span * depth
        return torch.stack([torch.zeros_like(shape), shape], dim=1)


def main(output_path: str = OUTPUT_PATH) -> None:
    with open(SCALER_PATH, "r", encoding="utf-8") as f:
        scalers = json.load(f)

    model = AnalyticShapeModel(scalers, BEAM_LENGTH_MM, BEAM_HEIGHT_MM)
    scripted = torch.jit.script(model)
    scripted.save(output_path)
    print(f"Saved analytic shape model to {output_path}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else OUTPUT_PATH)
