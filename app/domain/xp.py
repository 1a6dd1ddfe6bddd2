"""
XP rules.

XP awards:
  wish created             → +5 XP  (author)
  wish watered             → +5 XP  (supporter)
                           → +3 XP  (wish owner)

Level formula: level N requires 10 * N XP to complete.
  Level 1 → 2:  10 XP
  Level 2 → 3:  20 XP
  Level 3 → 4:  30 XP
  ...
"""

CREATE_WISH_XP = 5
WATER_SUPPORTER_XP = 5
WATER_OWNER_XP = 3

XP_PER_LEVEL_STEP = 10


def compute_level(total_xp: int) -> tuple[int, int, int]:
    """
    Derive level, current_level_xp, xp_to_next_level from total_xp.

    Returns:
        (level, current_level_xp, xp_to_next_level)
    """
    level = 1
    accumulated = 0
    while True:
        needed = XP_PER_LEVEL_STEP * level
        if total_xp < accumulated + needed:
            break
        accumulated += needed
        level += 1
    return level, total_xp - accumulated, XP_PER_LEVEL_STEP * level
