"""Container management service: images, containers, plugins and volumes, served through a pluggable container manager."""

__version__ = "0.1.0"