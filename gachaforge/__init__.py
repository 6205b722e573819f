"""Progression engine for an idle gacha RPG.

Item generation, gacha draws, enhancement, inheritance, synthesis and a
versioned, redundantly stored player save.
"""

__version__ = "0.1.0"
