"""
BookVetting - Visibility Policy
===============================

Who may open a book, given its visibility tier and mature-content flag.

Rules, in order:
1. not_aligned books are hidden from everyone
2. mature content needs a viewer whose account type meets the threshold
   (organization setting, else the platform default)
3. globally_aligned books are visible to everyone
4. conceptually_aligned books are visible to members of an endorsing
   organization
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from src.core.config import AgeGatingConfig
from src.shared.enums import AccountType, VisibilityTier
from src.shared.models import Book

logger = logging.getLogger(__name__)

_ACCOUNT_ORDER = [AccountType.CHILD, AccountType.TEEN, AccountType.ADULT]


@dataclass
class Viewer:
    """A signed-in user as seen by the visibility policy."""
    id: UUID
    account_type: Optional[AccountType] = None
    birth_date: Optional[date] = None
    organization_ids: List[UUID] = field(default_factory=list)
    # Threshold of the viewer's first organization, if it sets one
    mature_content_threshold: Optional[AccountType] = None


def age_on(birth_date: date, today: date) -> int:
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


class VisibilityChecker:
    """Stateless access policy for books."""

    def __init__(self, config: Optional[AgeGatingConfig] = None):
        self.config = config or AgeGatingConfig()

    def infer_account_type(self, birth_date: Optional[date], today: Optional[date] = None) -> AccountType:
        if birth_date is None:
            return AccountType.CHILD

        age = age_on(birth_date, today or date.today())
        if age <= self.config.child_max_age:
            return AccountType.CHILD
        if age <= self.config.teen_max_age:
            return AccountType.TEEN
        return AccountType.ADULT

    def can_view_mature_content(self, viewer: Viewer, today: Optional[date] = None) -> bool:
        account_type = viewer.account_type or self.infer_account_type(viewer.birth_date, today)
        threshold = viewer.mature_content_threshold or self.config.default_mature_content_threshold
        return _ACCOUNT_ORDER.index(AccountType(account_type)) >= _ACCOUNT_ORDER.index(
            AccountType(threshold)
        )

    def can_access(
        self,
        book: Book,
        viewer: Optional[Viewer],
        endorsing_org_ids: Iterable[UUID] = (),
        today: Optional[date] = None,
    ) -> bool:
        if book.visibility_tier == VisibilityTier.NOT_ALIGNED:
            return False

        if book.mature_content:
            if viewer is None:
                logger.info(f"Anonymous viewer cannot see mature content of book {book.id}")
                return False
            if not self.can_view_mature_content(viewer, today):
                logger.info(f"Viewer {viewer.id} cannot see mature content of book {book.id}")
                return False

        if book.visibility_tier == VisibilityTier.GLOBALLY_ALIGNED:
            return True

        if viewer is None:
            return False

        endorsing = set(endorsing_org_ids)
        allowed = any(org_id in endorsing for org_id in viewer.organization_ids)
        if not allowed:
            logger.info(f"Viewer {viewer.id} is not in an endorsing organization of book {book.id}")
        return allowed
