"""Runtime services shared by every layer (logging, profiling)."""

from . import telemetry

__all__ = ["telemetry"]
