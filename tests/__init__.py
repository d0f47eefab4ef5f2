"""Tests for the matchcore library."""
