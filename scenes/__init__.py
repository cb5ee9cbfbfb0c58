"""Scene controllers that host the onboarding overlay."""
