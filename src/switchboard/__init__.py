"""switchboard: channel ordering and availability for upstream credential pools."""

__version__ = "0.1.0"
