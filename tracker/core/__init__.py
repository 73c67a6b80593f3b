from .normalize import (
    COMPANY,
    ENTITY_KINDS,
    LEGAL_SUFFIXES,
    SOURCE,
    normalize,
    normalize_company_name,
    normalize_source_name,
    normalizer_for,
)
from .similarity import levenshtein_distance, rank_by_similarity, similarity

__all__ = [
    "COMPANY",
    "SOURCE",
    "ENTITY_KINDS",
    "LEGAL_SUFFIXES",
    "normalize",
    "normalize_company_name",
    "normalize_source_name",
    "normalizer_for",
    "levenshtein_distance",
    "similarity",
    "rank_by_similarity",
]
