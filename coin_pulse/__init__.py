"""Crypto price curves and sentiment-labelled news from unreliable providers."""

from .agent import PulseAgent
from .config import PulseConfig

__all__ = ["PulseAgent", "PulseConfig"]
