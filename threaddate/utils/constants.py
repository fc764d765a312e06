ERAS = (
    "Pre-1900s",
    "1900s",
    "1910s",
    "1920s",
    "1930s",
    "1940s",
    "1950s",
    "1960s",
    "1970s",
    "1980s",
    "1990s",
    "2000s (Y2K)",
    "2010s",
    "2020s",
    "Modern",
)

_ERA_SLUG_OVERRIDES = {
    "Pre-1900s": "pre-1900s",
    "2000s (Y2K)": "2000s",
    "Modern": "modern",
}
ERA_TO_SLUG = {era: _ERA_SLUG_OVERRIDES.get(era, era) for era in ERAS}
SLUG_TO_ERA = {slug: era for era, slug in ERA_TO_SLUG.items()}

# eras that get a hub page in the sitemap
FEATURED_ERAS = ("1950s", "1960s", "1970s", "1980s", "1990s", "2000s (Y2K)")

IDENTIFIER_CATEGORIES = (
    "Neck Tag",
    "Care Tag",
    "Button/Snap",
    "Zipper",
    "Tab",
    "Stitching",
    "Print/Graphic",
    "Hardware",
    "Other",
)

STITCH_TYPES = ("Single", "Double", "Chain", "Other")

CLOTHING_TYPES = (
    "T-Shirt",
    "Sweatshirt",
    "Hoodie",
    "Jacket",
    "Coat",
    "Jeans",
    "Pants",
    "Shorts",
    "Dress",
    "Skirt",
    "Hat",
    "Shoes",
    "Boots",
    "Belt",
    "Bag",
    "Other",
)

STATUSES = ("pending", "verified", "rejected")

ROLE_ADMIN = "admin"
ROLE_USER = "user"

FEATURED_BRAND_SLUGS = ("nike", "adidas", "champion", "levis", "wrangler", "carhartt")

YEAR_MIN = 1800
YEAR_MAX = 2030

MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_FORMATS = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "WEBP": ("image/webp", "webp"),
}
