"""Test suite for bucketstore."""
