"""Software oscilloscope core: edge triggering, median filtering, ring buffers and statistics."""

__version__ = "0.1.0"
__all__ = ["scope", "trigger"]