"""statflow: train / validate / tune workflows for supervised statistical models."""

__version__ = "0.1.0"
