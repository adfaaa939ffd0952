"""Tests for the lock card engine."""
