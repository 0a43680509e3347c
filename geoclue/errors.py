"""
Exception hierarchy for GeoClue.

Load failures are fatal for INIT, invalid regions are skipped, and
requests against an engine that has not been initialised are reported
back to the caller without stopping the worker.
"""


class GeoClueError(Exception):
    """Base class for all GeoClue errors."""


class DataLoadError(GeoClueError):
    """Region geometry could not be fetched or parsed."""


class InvalidRegionError(GeoClueError):
    """A region has no usable polygon (e.g. zero member polygons)."""


class UnknownRegionError(GeoClueError, KeyError):
    """A region id is not part of the loaded universe."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class EngineNotReadyError(GeoClueError):
    """A FILTER request arrived before a successful INIT."""

    def __init__(self, message: str = "Data not loaded") -> None:
        super().__init__(message)
