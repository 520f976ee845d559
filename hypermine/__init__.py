"""Client-side pieces for a voxel world simulation: view orientation, motion prediction, vector bounds, loading, ring and staging buffers, and metrics."""

__version__ = "0.1.0"