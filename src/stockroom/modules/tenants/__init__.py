"""Tenant provisioning module."""
