"""Local persistence for onboarding state."""

from .onboarding_flags import OnboardingFlagStore

__all__ = ["OnboardingFlagStore"]
