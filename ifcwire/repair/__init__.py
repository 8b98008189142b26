"""Wire repair: gap resolution, loop assembly, unit resolution and loop cleanup."""
