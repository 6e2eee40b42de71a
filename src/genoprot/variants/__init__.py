"""Variant-effect interpretation and protein database assembly (genoprot)."""

from genoprot.variants.annotation import (
    ImpactTier,
    VariantEffectRecord,
    classify_impact,
    is_translatable,
    parse_annotation,
)

__all__ = [
    "ImpactTier",
    "VariantEffectRecord",
    "classify_impact",
    "is_translatable",
    "parse_annotation",
]
