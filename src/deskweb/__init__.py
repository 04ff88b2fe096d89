"""Runtime controller for a desktop web wallpaper."""

__version__ = "0.1.0"
