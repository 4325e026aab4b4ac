"""BoothSync - Mirror Photo Booth folders into iCloud Drive."""

__version__ = "0.1.0"
