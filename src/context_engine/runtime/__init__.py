"""Runtime services shared by every layer (logging and telemetry)."""

from . import telemetry

__all__ = ["telemetry"]
