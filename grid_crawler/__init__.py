"""Grid-dispatched place collection around a geographic center."""

__version__ = "0.1.0"
