"""
Applicant listing for a client's job.

Joins each applicant's profile with an average rating computed from all of
their reviews (fetched in one bulk query, grouped in memory), then applies
the client's rating filter, free-text search and sort order.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from localpro.config import MarketplaceConfig
from localpro.models import Review, UserProfile
from localpro.results import ActionResult, ErrorCode, action
from localpro.storage.base import MarketplaceStorage
from localpro.validation import InputError, require

logger = logging.getLogger(__name__)

# Star filter -> [low, high) rating range
RATING_BUCKETS = {
    5: (4.5, None),
    4: (3.5, 4.5),
    3: (2.5, 3.5),
    2: (1.5, 2.5),
    1: (None, 1.5),
}

SORT_OPTIONS = ("rating", "reviews", "name")

FAILURE_MESSAGE = "Could not retrieve applicants"


@dataclass
class Applicant:
    """A provider who applied, with their review aggregate."""

    profile: UserProfile
    rating: float = 0.0
    review_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {**self.profile.to_dict(), "rating": self.rating, "reviewCount": self.review_count}


def average_ratings(reviews: List[Review]) -> Dict[str, tuple]:
    """Map provider ID -> (average rating, review count)."""
    grouped: Dict[str, List[float]] = defaultdict(list)
    for review in reviews:
        grouped[review.provider_id].append(review.rating)
    return {pid: (sum(r) / len(r), len(r)) for pid, r in grouped.items()}


def in_rating_bucket(rating: float, stars: int) -> bool:
    low, high = RATING_BUCKETS[stars]
    if low is not None and rating < low:
        return False
    if high is not None and rating >= high:
        return False
    return True


def sort_applicants(applicants: List[Applicant], sort_by: Optional[str]) -> List[Applicant]:
    if sort_by == "rating":
        return sorted(applicants, key=lambda a: a.rating, reverse=True)
    if sort_by == "reviews":
        return sorted(applicants, key=lambda a: a.review_count, reverse=True)
    if sort_by == "name":
        return sorted(applicants, key=lambda a: a.profile.display_name.lower())
    return list(applicants)


def applicant_stats(applicants: List[Applicant], top_rated_threshold: float = 4.5) -> Dict[str, Any]:
    """Summary shown above the applicant list."""
    avg = sum(a.rating for a in applicants) / len(applicants) if applicants else 0.0
    return {
        "avgRating": round(avg, 1),
        "totalReviews": sum(a.review_count for a in applicants),
        "topRated": sum(1 for a in applicants if a.rating >= top_rated_threshold),
    }


class ApplicantService:
    def __init__(self, storage: MarketplaceStorage, config: Optional[MarketplaceConfig] = None):
        self.storage = storage
        self.config = config or MarketplaceConfig()

    @action(FAILURE_MESSAGE, "Failed to get applicants")
    def get_job_applicants(
        self,
        job_id: str,
        client_id: str,
        rating_filter: Optional[int] = None,
        sort_by: Optional[str] = None,
        search_term: Optional[str] = None,
    ) -> ActionResult[Dict[str, Any]]:
        """Applicants for ``job_id``, visible only to the job's client.

        Returns ``{"applicants": [...], "stats": {...}}``; stats cover every
        applicant, before filtering.
        """
        job_id = require(job_id, "Job ID")
        client_id = require(client_id, "Client ID")
        if rating_filter is not None and rating_filter not in RATING_BUCKETS:
            raise InputError(f"Invalid rating filter: {rating_filter}")
        if sort_by is not None and sort_by not in SORT_OPTIONS:
            raise InputError(f"Invalid sort option: {sort_by}")

        job = self.storage.get_job(job_id)
        if job is None:
            return ActionResult.fail("Job not found", FAILURE_MESSAGE, ErrorCode.NOT_FOUND)
        if job.client_id != client_id:
            return ActionResult.fail(
                "Only the job client can view applicants", FAILURE_MESSAGE, ErrorCode.FORBIDDEN
            )

        applicants = self._load_applicants(job.applications)
        stats = applicant_stats(applicants, self.config.top_rated_threshold)

        if rating_filter is not None:
            applicants = [a for a in applicants if in_rating_bucket(a.rating, rating_filter)]
        if search_term:
            needle = search_term.lower()
            applicants = [
                a
                for a in applicants
                if needle in a.profile.display_name.lower() or needle in (a.profile.bio or "").lower()
            ]

        return ActionResult.ok(
            {"applicants": sort_applicants(applicants, sort_by), "stats": stats},
            "Applicants retrieved successfully",
        )

    def _load_applicants(self, provider_ids: List[str]) -> List[Applicant]:
        if not provider_ids:
            return []
        profiles = {p.uid: p for p in self.storage.get_users(provider_ids)}
        ratings = average_ratings(self.storage.list_reviews(list(profiles)))

        applicants = []
        for uid in provider_ids:
            profile = profiles.get(uid)
            if profile is None:
                logger.debug(f"Skipping applicant without profile: {uid}")
                continue
            rating, count = ratings.get(uid, (0.0, 0))
            applicants.append(Applicant(profile=profile, rating=rating, review_count=count))
        return applicants
