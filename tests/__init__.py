"""Tests for the Zonneplan Battery integration."""
