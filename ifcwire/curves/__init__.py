"""Curve descriptions and the reference segment converter."""
