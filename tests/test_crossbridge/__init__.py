"""Tests for the crossbridge package."""
