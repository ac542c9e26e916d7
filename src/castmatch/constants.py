"""Project-wide named constants.

Constants defined here replace inline magic numbers across the codebase.
"""

# A lone name word shorter than this never matches on word overlap alone:
# "Teja" must not pull in "Ravi Teja", while "Nagarjuna" may match
# "Akkineni Nagarjuna".
MIN_SINGLE_WORD_LENGTH: int = 8

# Records sampled from the store when resolving a slug without a known alias.
SAMPLE_LIMIT: int = 5

# Batch size when paging the whole movie table (audit tooling).
PAGE_SIZE: int = 1000

# A movie rated at or above this counts as a hit in role statistics.
HIT_RATING: float = 7.0

# Collaborators listed per crew field on a profile.
COLLABORATOR_LIMIT: int = 10

# RapidFuzz ratio (0-100) at which two normalized names are reported as similar.
SIMILARITY_THRESHOLD: int = 90

# Slug prefix used by celebrity profiles imported before slug cleanup ("celeb-teja").
LEGACY_SLUG_PREFIX: str = "celeb-"

# A movie rated at or above this is a "top rated" profile milestone.
MILESTONE_RATING: float = 8.0

# Movies listed per milestone category.
MILESTONE_LIMIT: int = 5
