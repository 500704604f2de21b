"""linkvault domain models: re-exports all public model classes."""

from src.models.record import (
    DEFAULT_TAGS,
    MAX_TAGS_PER_RECORD,
    SUMMARY_PLACEHOLDER,
    TAG_VOCABULARY,
    ChatExchange,
    LinkPreview,
    NewRecord,
    PageMetadata,
    RankedRecord,
    Record,
    Tag,
    canonical_tag,
    filter_tags,
)

__all__ = [
    "DEFAULT_TAGS",
    "MAX_TAGS_PER_RECORD",
    "SUMMARY_PLACEHOLDER",
    "TAG_VOCABULARY",
    "ChatExchange",
    "LinkPreview",
    "NewRecord",
    "PageMetadata",
    "RankedRecord",
    "Record",
    "Tag",
    "canonical_tag",
    "filter_tags",
]
