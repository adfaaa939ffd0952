"""Animated lock card state engine."""
