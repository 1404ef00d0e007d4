"""Configuration and genesis bootstrapper for local Berachain networks."""

__version__ = "0.1.0"
