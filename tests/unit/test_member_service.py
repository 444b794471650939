"""
Unit tests for MemberService.

Tests verify:
- Lookups by id and email (normalized)
- Paged listing and counting by confirmation status
- Partial updates, email uniqueness and the empty-value policy
- Password-set marking (confirmed members only) and administrative deletion
"""

from uuid import uuid4

import pytest

from src.adapters.repository.memory import InMemoryStore
from src.domain.confirmation_service import ConfirmationService
from src.domain.exceptions import (
    EmailAlreadyRegistered,
    InvalidMemberUpdate,
    MemberNotConfirmed,
    MemberNotFound,
    PasswordAlreadySet,
)
from src.domain.member import Member, MembershipRegistration, MembershipUpdate
from src.domain.member_service import MemberService


@pytest.fixture
def ada(confirmation_service: ConfirmationService, registration: MembershipRegistration) -> Member:
    return confirmation_service.register_member(registration)


@pytest.fixture
def confirmed_ada(confirmation_service: ConfirmationService, ada: Member) -> Member:
    confirmation_service.confirm_member(ada.id, "000123")
    return ada


@pytest.fixture
def bob(confirmation_service: ConfirmationService, clock) -> Member:
    clock.advance(minutes=1)
    return confirmation_service.register_member(
        MembershipRegistration(first_name="Bob", last_name="Marley", email="bob@example.com")
    )


class TestLookups:
    """Tests for get_member(), find_by_email() and is_email_confirmed()."""

    def test_get_member(self, member_service: MemberService, ada: Member) -> None:
        assert member_service.get_member(ada.id) == ada

    def test_get_unknown_member(self, member_service: MemberService) -> None:
        with pytest.raises(MemberNotFound):
            member_service.get_member(uuid4())

    def test_find_by_email_normalizes(self, member_service: MemberService, ada: Member) -> None:
        assert member_service.find_by_email("  A@B.COM ") == ada

    def test_find_by_unknown_email(self, member_service: MemberService) -> None:
        with pytest.raises(MemberNotFound):
            member_service.find_by_email("nobody@example.com")

    def test_is_email_confirmed_false_before_confirmation(
        self, member_service: MemberService, ada: Member
    ) -> None:
        assert member_service.is_email_confirmed("a@b.com") is False

    def test_is_email_confirmed_after_confirmation(
        self,
        member_service: MemberService,
        confirmation_service: ConfirmationService,
        ada: Member,
    ) -> None:
        confirmation_service.confirm_member(ada.id, "000123")
        assert member_service.is_email_confirmed("A@b.com") is True

    def test_is_email_confirmed_unknown_email(self, member_service: MemberService) -> None:
        assert member_service.is_email_confirmed("nobody@example.com") is False


class TestListAndCount:
    """Tests for list_members() and count_members()."""

    def test_list_all_in_creation_order(
        self, member_service: MemberService, ada: Member, bob: Member
    ) -> None:
        page = member_service.list_members()

        assert [m.id for m in page.items] == [ada.id, bob.id]
        assert page.total_elements == 2
        assert page.total_pages == 1
        assert page.first and page.last

    def test_list_by_status(
        self,
        member_service: MemberService,
        confirmation_service: ConfirmationService,
        ada: Member,
        bob: Member,
    ) -> None:
        confirmation_service.confirm_member(ada.id, "000123")

        assert [m.id for m in member_service.list_members(confirmed=True).items] == [ada.id]
        assert [m.id for m in member_service.list_members(confirmed=False).items] == [bob.id]

    def test_count_by_status(
        self,
        member_service: MemberService,
        confirmation_service: ConfirmationService,
        ada: Member,
        bob: Member,
    ) -> None:
        confirmation_service.confirm_member(ada.id, "000123")

        assert member_service.count_members(confirmed=True) == 1
        assert member_service.count_members(confirmed=False) == 1

    def test_empty_store(self, member_service: MemberService) -> None:
        page = member_service.list_members()

        assert page.items == []
        assert page.total_pages == 0
        assert page.first and page.last
        assert member_service.count_members(confirmed=False) == 0

    def test_pages_through_members(
        self, member_service: MemberService, ada: Member, bob: Member
    ) -> None:
        first = member_service.list_members(page=0, size=1)
        second = member_service.list_members(page=1, size=1)
        beyond = member_service.list_members(page=2, size=1)

        assert [m.id for m in first.items] == [ada.id]
        assert [m.id for m in second.items] == [bob.id]
        assert beyond.items == []
        assert first.total_pages == 2
        assert first.first and not first.last
        assert second.last and not second.first

    def test_page_total_respects_filter(
        self, member_service: MemberService, confirmed_ada: Member, bob: Member
    ) -> None:
        page = member_service.list_members(confirmed=False, size=1)

        assert [m.id for m in page.items] == [bob.id]
        assert page.total_elements == 1

    @pytest.mark.parametrize(("page", "size"), [(-1, 20), (0, 0)])
    def test_invalid_paging_rejected(
        self, member_service: MemberService, page: int, size: int
    ) -> None:
        with pytest.raises(ValueError):
            member_service.list_members(page=page, size=size)


class TestUpdateMember:
    """Tests for update_member()."""

    def test_partial_update(
        self, member_service: MemberService, ada: Member, store: InMemoryStore
    ) -> None:
        updated = member_service.update_member(ada.id, MembershipUpdate(last_name="King"))

        assert updated.last_name == "King"
        assert updated.first_name == "Ada"
        assert store.members[ada.id] == updated

    def test_empty_update_bumps_updated_at(
        self, member_service: MemberService, ada: Member
    ) -> None:
        updated = member_service.update_member(ada.id, MembershipUpdate())
        assert updated.updated_at > ada.updated_at
        assert updated.email == ada.email

    def test_clear_address(self, member_service: MemberService, ada: Member) -> None:
        updated = member_service.update_member(ada.id, MembershipUpdate(address=""))
        assert updated.address is None

    def test_clear_required_field_rejected(
        self, member_service: MemberService, ada: Member, store: InMemoryStore
    ) -> None:
        with pytest.raises(InvalidMemberUpdate):
            member_service.update_member(ada.id, MembershipUpdate(first_name=" "))
        assert store.members[ada.id] == ada

    def test_change_email(self, member_service: MemberService, ada: Member) -> None:
        updated = member_service.update_member(ada.id, MembershipUpdate(email="New@Example.com"))
        assert updated.email == "new@example.com"
        assert member_service.find_by_email("new@example.com").id == ada.id

    def test_email_taken_by_other_member(
        self, member_service: MemberService, ada: Member, bob: Member
    ) -> None:
        with pytest.raises(EmailAlreadyRegistered):
            member_service.update_member(ada.id, MembershipUpdate(email="BOB@example.com"))
        assert member_service.get_member(ada.id).email == "a@b.com"

    def test_same_email_is_not_a_conflict(self, member_service: MemberService, ada: Member) -> None:
        updated = member_service.update_member(ada.id, MembershipUpdate(email="A@B.com"))
        assert updated.email == "a@b.com"

    def test_unknown_member(self, member_service: MemberService) -> None:
        with pytest.raises(MemberNotFound):
            member_service.update_member(uuid4(), MembershipUpdate(first_name="X"))


class TestMarkPasswordSet:
    """Tests for mark_password_set()."""

    def test_marks_flag(self, member_service: MemberService, confirmed_ada: Member) -> None:
        assert member_service.mark_password_set(confirmed_ada.id).password_set is True
        assert member_service.get_member(confirmed_ada.id).password_set is True

    def test_unconfirmed_member_rejected(
        self, member_service: MemberService, ada: Member, store: InMemoryStore
    ) -> None:
        with pytest.raises(MemberNotConfirmed):
            member_service.mark_password_set(ada.id)
        assert store.members[ada.id].password_set is False

    def test_second_mark_rejected(
        self, member_service: MemberService, confirmed_ada: Member
    ) -> None:
        member_service.mark_password_set(confirmed_ada.id)
        with pytest.raises(PasswordAlreadySet):
            member_service.mark_password_set(confirmed_ada.id)

    def test_unknown_member(self, member_service: MemberService) -> None:
        with pytest.raises(MemberNotFound):
            member_service.mark_password_set(uuid4())


class TestDeleteMember:
    """Tests for delete_member()."""

    def test_removes_member_and_codes(
        self, member_service: MemberService, ada: Member, store: InMemoryStore
    ) -> None:
        member_service.delete_member(ada.id)

        assert ada.id not in store.members
        assert not any(r.member_id == ada.id for r in store.confirmations.values())

    def test_email_reusable_after_delete(
        self,
        member_service: MemberService,
        confirmation_service: ConfirmationService,
        registration: MembershipRegistration,
        ada: Member,
    ) -> None:
        member_service.delete_member(ada.id)
        again = confirmation_service.register_member(registration)
        assert again.id != ada.id

    def test_unknown_member(self, member_service: MemberService) -> None:
        with pytest.raises(MemberNotFound):
            member_service.delete_member(uuid4())
