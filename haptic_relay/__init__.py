"""Phone-side command relay and wearable pulse translator for haptic feedback."""

__version__ = "0.1.0"
