from .registry import ConnectionRegistry, Departure
from .router import SignalingRelay

__all__ = ["ConnectionRegistry", "Departure", "SignalingRelay"]
