"""brainlib - a live keyword index over a folder of personal documents."""

__version__ = "1.0.0"
