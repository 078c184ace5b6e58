"""TCP and UDP socket programs: file transfer, echo servers and chat rooms."""

__version__ = "0.1.0"