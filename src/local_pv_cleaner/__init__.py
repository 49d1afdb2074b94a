"""Deletes Retain-policy local PersistentVolumes whose Node is gone."""

__version__ = "0.1.0"
