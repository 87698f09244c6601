"""Off-chain proposal description retrieval."""

from realms_governance.metadata.client import MetadataFetcher
from realms_governance.metadata.extract import (
    ProposalMetadata,
    extract_description,
    is_allowed_metadata_url,
)

__all__ = [
    "MetadataFetcher",
    "ProposalMetadata",
    "extract_description",
    "is_allowed_metadata_url",
]
