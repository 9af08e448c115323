"""Tests for jsh."""
