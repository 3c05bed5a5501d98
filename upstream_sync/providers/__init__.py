"""Hosting provider gateways."""
