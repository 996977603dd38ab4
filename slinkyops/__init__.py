"""Object models, an in-memory client and controller helpers for Slurm clusters run as pods."""

__version__ = "0.4.0"