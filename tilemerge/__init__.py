"""Sliding-tile merge puzzle core (move/merge engine and board state store).

Kept free of any rendering or input concerns so it can be driven by a UI,
a bot, or tests alike.
"""
