"""
memmatch - Memory Matching Game Engine

A turn-based engine for the concentration card game, playable solo against
an AI opponent or by several players sharing one screen. The engine provides:
- Deck generation and match resolution
- Turn rotation, combo and streak scoring
- Tiered AI opponents with bounded memory
- Power-ups, achievements and stage progression
"""

__version__ = "0.1.0"
