"""Balance tables for item generation, gacha, enhancement and save handling.

All values are live game balance. Keys use the camelCase stat and item
names of the persisted save format so the tables can be read against a
raw save without translation.
"""

# Grade ordering (ordinal used for grade gaps)
GRADE_ORDER: list[str] = ["common", "rare", "epic", "legendary", "mythic", "divine"]

# Grades that can drop from the regular pool and be synthesized into
SYNTHESIS_GRADE_ORDER: list[str] = ["common", "rare", "epic", "legendary", "mythic"]

STAT_FIELDS: list[str] = [
    "attack",
    "defense",
    "defensePenetration",
    "additionalAttackChance",
    "creditPerSecondBonus",
    "criticalChance",
    "criticalDamageMultiplier",
]

# Stats stored as fractions rather than flat points
FRACTIONAL_STATS: frozenset[str] = frozenset({
    "additionalAttackChance",
    "criticalChance",
    "criticalDamageMultiplier",
})

EQUIPMENT_TYPES: list[str] = [
    "helmet", "armor", "pants", "gloves", "shoes", "shoulder",
    "earring", "ring", "necklace",
    "mainWeapon", "subWeapon", "pet",
]
POTION_TYPES: list[str] = ["wealthPotion", "bossPotion", "artisanPotion"]
UNIQUE_WEAPON_TYPE = "zeusSword"

# Item type -> the one stat it may carry
PRIMARY_STATS: dict[str, str] = {
    "helmet": "defense",
    "armor": "defense",
    "pants": "defense",
    "gloves": "additionalAttackChance",
    "shoes": "additionalAttackChance",
    "shoulder": "additionalAttackChance",
    "earring": "defensePenetration",
    "ring": "defensePenetration",
    "necklace": "defensePenetration",
    "mainWeapon": "attack",
    "subWeapon": "attack",
    "pet": "attack",
    "wealthPotion": "creditPerSecondBonus",
    "bossPotion": "criticalDamageMultiplier",
    "artisanPotion": "criticalChance",
    "zeusSword": "attack",
}

# Template base stats per item type (only the primary stat is non-zero)
ITEM_BASE_STATS: dict[str, dict[str, float]] = {
    "helmet": {"defense": 5},
    "armor": {"defense": 8},
    "pants": {"defense": 6},
    "gloves": {"additionalAttackChance": 0.02},
    "shoes": {"additionalAttackChance": 0.015},
    "shoulder": {"additionalAttackChance": 0.025},
    "earring": {"defensePenetration": 3},
    "ring": {"defensePenetration": 2},
    "necklace": {"defensePenetration": 4},
    "mainWeapon": {"attack": 10},
    "subWeapon": {"attack": 6},
    "pet": {"attack": 8},
    "wealthPotion": {"creditPerSecondBonus": 5},
    "bossPotion": {"criticalDamageMultiplier": 0.5},
    "artisanPotion": {"criticalChance": 0.1},
    "zeusSword": {"attack": 3000},
}

# Grade magnitude applied to the template's non-zero stat
GRADE_BASE_STATS: dict[str, dict[str, float]] = {
    "common": {
        "attack": 10, "defense": 5, "defensePenetration": 2,
        "additionalAttackChance": 0.01, "creditPerSecondBonus": 2,
        "criticalDamageMultiplier": 0.2, "criticalChance": 0.05,
    },
    "rare": {
        "attack": 30, "defense": 15, "defensePenetration": 6,
        "additionalAttackChance": 0.03, "creditPerSecondBonus": 5,
        "criticalDamageMultiplier": 0.4, "criticalChance": 0.1,
    },
    "epic": {
        "attack": 60, "defense": 30, "defensePenetration": 12,
        "additionalAttackChance": 0.06, "creditPerSecondBonus": 10,
        "criticalDamageMultiplier": 0.8, "criticalChance": 0.15,
    },
    "legendary": {
        "attack": 120, "defense": 60, "defensePenetration": 24,
        "additionalAttackChance": 0.12, "creditPerSecondBonus": 20,
        "criticalDamageMultiplier": 1.5, "criticalChance": 0.25,
    },
    "mythic": {
        "attack": 200, "defense": 100, "defensePenetration": 40,
        "additionalAttackChance": 0.2, "creditPerSecondBonus": 35,
        "criticalDamageMultiplier": 2.5, "criticalChance": 0.4,
    },
}

# Random bonus roll (inclusive) added on top of the grade magnitude
RANDOM_BONUS_RANGE: tuple[int, int] = (1, 5)

# Bonus scale for fractional stats
RANDOM_BONUS_SCALE: dict[str, float] = {
    "additionalAttackChance": 0.001,
    "criticalChance": 0.01,
    "criticalDamageMultiplier": 0.01,
}

# creditPerSecondBonus rolls a grade-dependent bonus instead
CREDIT_BONUS_RANGE: dict[str, tuple[int, int]] = {
    "common": (0, 0),
    "rare": (0, 1),
    "epic": (0, 3),
    "legendary": (1, 5),
    "mythic": (1, 5),
}

ITEM_IMAGE_PATHS: dict[str, str] = {
    "helmet": "/Items/Helmets.png",
    "armor": "/Items/Armor.png",
    "pants": "/Items/Pants.png",
    "gloves": "/Items/Gloves.png",
    "shoes": "/Items/Shoes.png",
    "shoulder": "/Items/Shoulder.png",
    "earring": "/Items/Earring.png",
    "ring": "/Items/Ring.png",
    "necklace": "/Items/Necklace.png",
    "mainWeapon": "/Items/MainWeapon.png",
    "subWeapon": "/Items/SubWeapon.png",
    "pet": "/Items/Pet.png",
    "wealthPotion": "/Items/WealthPotion.png",
    "bossPotion": "/Items/BossPotion.png",
    "artisanPotion": "/Items/ArtisanPotion.png",
    "zeusSword": "/Items/ZeusSword.png",
}
DEFAULT_IMAGE_PATH = "/Items/default.png"

# ---------------------------------------------------------------------------
# Gacha
# ---------------------------------------------------------------------------

# Grade draw probabilities, walked cumulatively in this order
GACHA_RATES: dict[str, float] = {
    "common": 0.72,
    "rare": 0.25,
    "epic": 0.0245,
    "legendary": 0.005,
    "mythic": 0.00049,
    "divine": 0.00001,
}

# Credits per single draw
GACHA_COSTS: dict[str, int] = {
    "armor": 800,
    "accessories": 1200,
    "weapons": 1600,
    "potions": 1000,
}

GACHA_CATEGORY_TYPES: dict[str, list[str]] = {
    "armor": ["helmet", "armor", "pants", "gloves", "shoes", "shoulder"],
    "accessories": ["earring", "ring", "necklace"],
    "weapons": ["mainWeapon", "subWeapon", "pet"],
    "potions": ["wealthPotion", "bossPotion", "artisanPotion"],
}

MULTI_DRAW_COUNT = 10

# ---------------------------------------------------------------------------
# Enhancement
# ---------------------------------------------------------------------------

MAX_ENHANCEMENT_LEVEL = 25

# Success rate by the level being attempted
# Format: {next_level: success_rate}
ENHANCEMENT_SUCCESS_RATES: dict[int, float] = {
    1: 0.98,
    2: 0.95,
    3: 0.92,
    4: 0.88,
    5: 0.85,
    6: 0.80,
    7: 0.75,
    8: 0.70,
    9: 0.65,
    10: 0.65,
    11: 0.60,
    12: 0.55,
    13: 0.52,
    14: 0.48,
    15: 0.45,
    16: 0.42,
    17: 0.38,
    18: 0.35,
    19: 0.32,
    20: 0.30,
    21: 0.26,
    22: 0.23,
    23: 0.20,
    24: 0.17,
    25: 0.15,
}
DEFAULT_SUCCESS_RATE = 0.01

# Destruction rate by the level being attempted (0 below +18)
ENHANCEMENT_DESTRUCTION_RATES: dict[int, float] = {
    18: 0.02,
    19: 0.03,
    20: 0.05,
    21: 0.07,
    22: 0.10,
    23: 0.13,
    24: 0.16,
    25: 0.20,
}
DESTRUCTION_RATE_START = 18

# Failures from this level on drop one level
DOWNGRADE_START_LEVEL = 11

# Once reached, failure never drops below these levels
SAFE_ENHANCEMENT_LEVELS: list[int] = [15, 20]

# Enhancement cost multiplier per grade
ENHANCEMENT_COST_MULTIPLIERS: dict[str, float] = {
    "common": 1.0,
    "rare": 1.3,
    "epic": 1.7,
    "legendary": 2.2,
    "mythic": 3.0,
}

# Destruction prevention
DESTRUCTION_PREVENTION_MIN_LEVEL = 20
DESTRUCTION_PREVENTION_COSTS: dict[int, int] = {
    20: 500_000,
    21: 650_000,
    22: 800_000,
    23: 1_000_000,
    24: 1_250_000,
    25: 1_500_000,
}

# Primary stat growth per level, by grade
ENHANCEMENT_STAT_BASE: dict[str, int] = {
    "common": 3,
    "rare": 5,
    "epic": 8,
    "legendary": 12,
    "mythic": 18,
}

# Per-stat conversion of the raw growth value: (scale, minimum)
# Flat stats floor the raw value, the rest scale it.
ENHANCEMENT_STAT_CONVERSION: dict[str, tuple[float, float]] = {
    "attack": (1.0, 3),
    "defense": (1.0, 3),
    "defensePenetration": (1.0, 3),
    "additionalAttackChance": (0.00012, 0.0005),
    "creditPerSecondBonus": (0.05, 0.2),
    "criticalDamageMultiplier": (0.0015, 0.002),
    "criticalChance": (0.0004, 0.001),
}

# ---------------------------------------------------------------------------
# Inheritance
# ---------------------------------------------------------------------------

# Format: {grade_gap: (success_rate, level_reduction)}
INHERITANCE_TABLE: dict[int, tuple[float, int]] = {
    1: (0.70, 1),
    2: (0.50, 2),
    3: (0.30, 3),
    4: (0.15, 4),
}

# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------

SYNTHESIS_REQUIRED_ITEMS = 10

# ---------------------------------------------------------------------------
# Player / save
# ---------------------------------------------------------------------------

MAX_CREDITS = 2**53 - 1
MAX_STAGE = 100
MAX_INVENTORY_SIZE = 100
ADDITIONAL_ATTACK_CHANCE_CAP = 0.5
DEFAULT_CREDIT_PER_SECOND = 1
OFFLINE_CAP_SECONDS = 24 * 60 * 60

# Items equipped on a fresh save (common grade)
STARTING_EQUIPMENT: list[str] = ["helmet", "armor", "pants", "mainWeapon"]

# Item sale
SALE_BASE_PRICES: dict[str, int] = {
    "common": 5,
    "rare": 12,
    "epic": 25,
    "legendary": 50,
    "mythic": 100,
    "divine": 0,
}
SALE_ENHANCEMENT_BONUS = 0.05
MAX_ITEMS_PER_SALE = 20

# Stage requirement curve: floor(base * growth ** (stage - 1))
STAGE_ATTACK_BASE = 10
STAGE_ATTACK_GROWTH = 1.15
STAGE_DEFENSE_BASE = 10
STAGE_DEFENSE_GROWTH = 1.12

# Persistence
SAVE_SCHEMA_VERSION = 4
STORAGE_KEY = "idle-gacha-game-state"
BACKUP_SUFFIX = "_backup"
EMERGENCY_SUFFIX = "_emergency"
LAST_SAVE_SUFFIX = "_last_save_time"
MIGRATION_VERSION_KEY = "__migration_version__"
SAVE_RETRY_ATTEMPTS = 3
SAVE_RETRY_BASE_DELAY = 0.1  # seconds, doubled per retry
AUTOSAVE_INTERVAL = 30.0  # seconds

# Legacy glove/shoe/shoulder attack -> additionalAttackChance rate
LEGACY_ATTACK_CONVERSION_RATE = 0.005
LEGACY_ATTACK_CONVERSION_TYPES: list[str] = ["gloves", "shoes", "shoulder"]

# Fractional bonus points are scaled by this when re-concentrated
BONUS_CONCENTRATION_SCALE = 1000
