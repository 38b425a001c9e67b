"""
Warp Protocol - Push-your-luck engine

A deterministic, seed-driven game engine. Players draw modules from a bag,
build up flux, credits and instability, and choose between banking the round
or pushing on and risking a meltdown. The package provides:
- Seeded RNG and the module catalog
- A pure (state, action) -> state reducer
- In-memory sessions and share links
- A REST API and a command-line player
"""

__version__ = "0.1.0"
