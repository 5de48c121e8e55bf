"""Simulator of four MESI-coherent L1 caches over a shared snooping bus."""

__version__ = "0.1.0"
__all__ = ["model", "blockcache", "usage", "simulator", "report", "cli", "sweep"]