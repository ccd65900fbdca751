"""Food truck social scheduling service: campaigns and social posts."""

__version__ = "0.1.0"
