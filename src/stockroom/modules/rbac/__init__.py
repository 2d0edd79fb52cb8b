"""Tenant role administration and the permission catalogue."""
