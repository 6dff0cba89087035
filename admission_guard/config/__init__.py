"""Configuration package for the admission engine."""

from .config import AdmissionConfig
from .loader import load_settings
from .schema import AdmissionSettings

__all__ = ["AdmissionConfig", "AdmissionSettings", "load_settings"]
