"""Analytics for the onboarding walkthrough."""

from .metrics import MetricsEvent, MetricsExporter
from .tutorial import TutorialAnalytics

__all__ = ["MetricsEvent", "MetricsExporter", "TutorialAnalytics"]
