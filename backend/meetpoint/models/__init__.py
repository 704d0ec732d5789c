from meetpoint.models.station import Station

__all__ = [
    "Station",
]
