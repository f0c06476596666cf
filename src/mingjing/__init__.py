"""职场明镜 - workplace speech analysis service."""

__version__ = "1.0.0"
