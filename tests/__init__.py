"""Test suite for the catalog favorites API."""
