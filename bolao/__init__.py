"""Bolão GFT backend."""
