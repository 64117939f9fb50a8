"""Test suite for the Try-On Gateway."""
