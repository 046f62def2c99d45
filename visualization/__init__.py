"""Instance mapping, colormaps and per-frame scene assembly."""
