"""Random point-to-point traffic over a shared link, with a per-flow performance report."""
