"""Learnio client core: profile storage, tiered sign-in, onboarding and activity routing."""
