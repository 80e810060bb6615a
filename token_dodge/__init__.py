"""
Token Dodge Package
===================

Spawning, placement and collision engine for a side-scrolling
"dodge the obstacles, collect the tokens" arcade game.

The engine lives in ``token_dodge.dodge_core``. All tunable parameters are
in game_config.yaml next to this file:

- Difficulty curve and spawn probabilities
- Placement margins and retry budgets
- Obstacle pattern timing
- Obstacle types, sizes and weights
- Session lives and submission limits
"""
