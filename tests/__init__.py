"""Test suite for BiteBoard."""
