"""InvestTrack: personal investment tracking API."""

__version__ = "1.0.0"
