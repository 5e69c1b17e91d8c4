"""Session and game-state services: rooms, rounds, tagging.

This package holds the authoritative game logic. It never imports the
Socket.IO layer; outbound events go through a bus object handed in by the
app factory, keeping transport concerns separated from game mechanics.
"""
