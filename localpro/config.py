"""Marketplace configuration."""

from dataclasses import dataclass


@dataclass
class MarketplaceConfig:
    """Tunables shared by the marketplace services.

    Attributes:
        bulk_quantity_threshold: Cart quantity at which bulk pricing applies.
        top_rated_threshold: Average rating counted as "top rated".
        currency: Currency code for all monetary values.
        feed_poll_interval: Seconds between live feed polls.
        max_search_results: Cap on search results (0 means unlimited).
    """

    bulk_quantity_threshold: int = 10
    top_rated_threshold: float = 4.5
    currency: str = "PHP"
    feed_poll_interval: float = 1.0
    max_search_results: int = 0

    def __post_init__(self):
        if self.bulk_quantity_threshold < 1:
            raise ValueError("bulk_quantity_threshold must be at least 1")
        if not 0 < self.top_rated_threshold <= 5:
            raise ValueError("top_rated_threshold must be in (0, 5]")
        if self.feed_poll_interval <= 0:
            raise ValueError("feed_poll_interval must be positive")
        if self.max_search_results < 0:
            raise ValueError("max_search_results cannot be negative")
