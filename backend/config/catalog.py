# This module defines catalog vocabulary as module-level constants.
# The saved-search matcher and the listing store queries both read from here,
# so the in-process filter and the database push-down use the same families.

# Blade types (nihonto).
NIHONTO_TYPES = [
    "katana",
    "wakizashi",
    "tanto",
    "tachi",
    "naginata",
    "yari",
    "kodachi",
    "ken",
    "naginata naoshi",
    "sword",
]

# Sword fitting types (tosogu).
TOSOGU_TYPES = [
    "tsuba",
    "fuchi-kashira",
    "fuchi_kashira",
    "fuchi",
    "kashira",
    "kozuka",
    "kogatana",
    "kogai",
    "menuki",
    "koshirae",
    "tosogu",
    "mitokoromono",
]

# Armor pieces.
ARMOR_TYPES = [
    "armor",
    "yoroi",
    "gusoku",
    "helmet",
    "kabuto",
    "menpo",
    "mengu",
    "kote",
    "suneate",
    "do",
]

CATEGORY_ITEM_TYPES = {
    "nihonto": NIHONTO_TYPES,
    "tosogu": TOSOGU_TYPES,
    "armor": ARMOR_TYPES,
}

CATEGORY_LABELS = {
    "nihonto": "Nihonto (blades)",
    "tosogu": "Tosogu (fittings)",
    "armor": "Armor & Military",
}

# Sentinel meaning "no category restriction".
ALL_CATEGORIES = "all"

# Non-collectible item types hidden from browse and alerts.
EXCLUDED_ITEM_TYPES = ["stand", "book", "other"]

# Certification keys as stored in saved searches, mapped to every cert_type
# spelling dealers' listings are known to use.
CERT_VARIANTS = {
    "Juyo": ["Juyo", "juyo"],
    "Tokuju": ["Tokuju", "tokuju", "Tokubetsu Juyo", "tokubetsu_juyo"],
    "TokuHozon": ["TokuHozon", "Tokubetsu Hozon", "tokubetsu_hozon"],
    "Hozon": ["Hozon", "hozon"],
    "TokuKicho": ["TokuKicho", "Tokubetsu Kicho", "tokubetsu_kicho"],
    "Kicho": ["Kicho", "kicho"],
    "JuyoTosogu": ["Juyo Tosogu", "juyo_tosogu"],
    "TokuHozonTosogu": ["Tokubetsu Hozon Tosogu", "tokubetsu_hozon_tosogu"],
    "HozonTosogu": ["Hozon Tosogu", "hozon_tosogu"],
    "NTHK": ["NTHK Kanteisho", "nthk"],
}

# Listing status values.
STATUS_AVAILABLE = "available"
SOLD_STATUSES = ["sold", "presumed_sold"]
