"""Realtime core of the Vakans.uz job board."""
