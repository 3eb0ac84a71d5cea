"""Microbrick policy enforcement for Omegga-hosted Brickadia servers."""

__version__ = "0.3.0"
