"""Maze domain services: level generation, pursuit, visibility and timers.

This package holds the run engine that HTTP routes and socket handlers
drive, keeping transport concerns separated from the game rules.
"""
