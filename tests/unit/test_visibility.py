"""BookVetting - Visibility Policy Tests"""

from datetime import date
from uuid import uuid4

import pytest

from src.books.visibility import Viewer, VisibilityChecker, age_on
from src.core.config import AgeGatingConfig
from src.shared.enums import AccountType, VisibilityTier
from src.shared.models import Book

TODAY = date(2026, 6, 1)


def book(tier: VisibilityTier, mature: bool = False) -> Book:
    return Book(id=uuid4(), title="T", author="A", visibility_tier=tier, mature_content=mature)


@pytest.fixture
def checker():
    return VisibilityChecker(AgeGatingConfig())


class TestTiers:

    def test_not_aligned_hidden(self, checker):
        viewer = Viewer(id=uuid4(), account_type=AccountType.ADULT)
        assert not checker.can_access(book(VisibilityTier.NOT_ALIGNED), viewer)

    def test_globally_aligned_visible_to_anyone(self, checker):
        assert checker.can_access(book(VisibilityTier.GLOBALLY_ALIGNED), None)

    def test_conceptually_aligned_needs_endorsing_org(self, checker):
        org = uuid4()
        member = Viewer(id=uuid4(), organization_ids=[org])
        outsider = Viewer(id=uuid4(), organization_ids=[uuid4()])
        b = book(VisibilityTier.CONCEPTUALLY_ALIGNED)

        assert checker.can_access(b, member, endorsing_org_ids=[org])
        assert not checker.can_access(b, outsider, endorsing_org_ids=[org])
        assert not checker.can_access(b, None, endorsing_org_ids=[org])


class TestMatureContent:

    def test_anonymous_denied(self, checker):
        assert not checker.can_access(book(VisibilityTier.GLOBALLY_ALIGNED, mature=True), None)

    @pytest.mark.parametrize("account_type,allowed", [
        (AccountType.CHILD, False),
        (AccountType.TEEN, True),
        (AccountType.ADULT, True),
    ])
    def test_default_threshold_is_teen(self, checker, account_type, allowed):
        viewer = Viewer(id=uuid4(), account_type=account_type)
        b = book(VisibilityTier.GLOBALLY_ALIGNED, mature=True)
        assert checker.can_access(b, viewer) is allowed

    def test_organization_threshold_overrides_default(self, checker):
        viewer = Viewer(
            id=uuid4(),
            account_type=AccountType.TEEN,
            mature_content_threshold=AccountType.ADULT,
        )
        assert not checker.can_access(book(VisibilityTier.GLOBALLY_ALIGNED, mature=True), viewer)

    def test_account_type_inferred_from_birth_date(self, checker):
        teen = Viewer(id=uuid4(), birth_date=date(2011, 1, 1))
        child = Viewer(id=uuid4(), birth_date=date(2016, 1, 1))
        b = book(VisibilityTier.GLOBALLY_ALIGNED, mature=True)

        assert checker.can_access(b, teen, today=TODAY)
        assert not checker.can_access(b, child, today=TODAY)

    def test_unknown_age_is_child(self, checker):
        assert checker.infer_account_type(None) == AccountType.CHILD

    def test_age_boundaries(self, checker):
        assert checker.infer_account_type(date(2014, 6, 1), TODAY) == AccountType.CHILD
        assert checker.infer_account_type(date(2013, 6, 1), TODAY) == AccountType.TEEN
        assert checker.infer_account_type(date(2008, 6, 2), TODAY) == AccountType.TEEN
        assert checker.infer_account_type(date(2008, 6, 1), TODAY) == AccountType.ADULT

    def test_age_before_birthday(self):
        assert age_on(date(2000, 12, 31), date(2026, 6, 1)) == 25
        assert age_on(date(2000, 1, 1), date(2026, 6, 1)) == 26

    def test_mature_conceptual_still_needs_membership(self, checker):
        org = uuid4()
        viewer = Viewer(id=uuid4(), account_type=AccountType.ADULT, organization_ids=[uuid4()])
        b = book(VisibilityTier.CONCEPTUALLY_ALIGNED, mature=True)
        assert not checker.can_access(b, viewer, endorsing_org_ids=[org])
