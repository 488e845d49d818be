"""
Tests for TeamService.

Covers:
- Driver and transporter creation with identity validation and uniqueness
- Updates, including identity changes
- Deletion guarded by associated requests
- The availability toggle guard
- Assignment to and unassignment from requests
"""

from uuid import uuid4

import pytest

from fundflow_kernel.domain.dtos import DriverData, TransporterData
from fundflow_kernel.domain.employee import EmployeeIdentity
from fundflow_kernel.domain.lifecycle import RequestStatus
from fundflow_kernel.exceptions import (
    ActiveRequestsError,
    AssociatedRequestsError,
    DriverNotFoundError,
    DuplicateKeyError,
    RequestNotFoundError,
    RoleAlreadyAssignedError,
    TeamMemberNotAssignedError,
    TeamMemberUnavailableError,
    TransporterNotFoundError,
    UnassignmentNotAllowedError,
    ValidationError,
)


class TestCreateMember:
    """Tests for create_driver / create_transporter."""

    def test_create_driver(self, team_service):
        info = team_service.create_driver(
            DriverData(
                matricule="M-100",
                first_name="Amine",
                last_name="Trabelsi",
                cin="09876543",
                license_number="TN-55",
            )
        )

        assert info.id is not None
        assert info.identity == EmployeeIdentity("M-100", "Amine", "Trabelsi", "09876543")
        assert info.identity.full_name == "Amine Trabelsi"
        assert info.matricule == "M-100"
        assert info.license_number == "TN-55"
        assert info.available is True
        assert info.request_ids == ()

    def test_create_transporter(self, team_service):
        info = team_service.create_transporter(
            TransporterData(
                matricule="T-7",
                first_name="Ines",
                last_name="Gharbi",
                cin="11223344",
                vehicle_type="VAN",
                available=False,
            )
        )

        assert info.vehicle_type == "VAN"
        assert info.available is False
        assert info.cin == "11223344"

    @pytest.mark.parametrize(
        "field, message",
        [
            ("matricule", "Matricule is required"),
            ("first_name", "First name is required"),
            ("last_name", "Last name is required"),
            ("cin", "CIN is required"),
        ],
    )
    def test_blank_identity_field_rejected(self, make_driver, field, message):
        with pytest.raises(ValidationError) as exc_info:
            make_driver(**{field: ""})
        assert exc_info.value.field == field
        assert str(exc_info.value) == message

    def test_duplicate_cin_rejected(self, make_driver):
        make_driver(cin="C-1")
        with pytest.raises(DuplicateKeyError) as exc_info:
            make_driver(cin="C-1")
        assert exc_info.value.field == "cin"

    def test_duplicate_matricule_rejected(self, make_transporter):
        make_transporter(matricule="TM-1")
        with pytest.raises(DuplicateKeyError) as exc_info:
            make_transporter(matricule="TM-1")
        assert exc_info.value.field == "matricule"
        assert exc_info.value.entity_type == "Transporter"

    def test_same_keys_allowed_across_roles(self, make_driver, make_transporter):
        """Uniqueness is per role: a driver and a transporter may share a cin."""
        make_driver(cin="SHARED", matricule="SHARED")
        info = make_transporter(cin="SHARED", matricule="SHARED")
        assert info.cin == "SHARED"


class TestUpdateMember:
    """Tests for update_driver / update_transporter."""

    def test_overwrites_every_field(self, team_service, make_driver):
        driver = make_driver()
        updated = team_service.update_driver(
            driver.id,
            DriverData(
                matricule="NEW-M",
                first_name="Nadia",
                last_name="Jaziri",
                cin="NEW-C",
                license_number=None,
                available=False,
            ),
        )

        assert updated.identity == EmployeeIdentity("NEW-M", "Nadia", "Jaziri", "NEW-C")
        assert updated.license_number is None
        assert updated.available is False

    def test_keeping_own_keys_succeeds(self, team_service, make_transporter):
        transporter = make_transporter()
        updated = team_service.update_transporter(
            transporter.id,
            TransporterData(
                matricule=transporter.matricule,
                first_name="Renamed",
                last_name="Member",
                cin=transporter.cin,
                vehicle_type="TRAILER",
            ),
        )
        assert updated.identity.first_name == "Renamed"
        assert updated.vehicle_type == "TRAILER"

    def test_colliding_cin_rejected(self, team_service, make_driver, team_selector):
        first = make_driver()
        second = make_driver()

        with pytest.raises(DuplicateKeyError):
            team_service.update_driver(
                second.id,
                DriverData(
                    matricule=second.matricule,
                    first_name="X",
                    last_name="Y",
                    cin=first.cin,
                ),
            )
        assert team_selector.get_driver(second.id).identity == second.identity

    def test_not_found(self, team_service):
        with pytest.raises(TransporterNotFoundError):
            team_service.update_transporter(
                uuid4(), TransporterData("M", "F", "L", "C")
            )


class TestDeleteMember:
    """Tests for delete_driver / delete_transporter."""

    def test_delete_without_requests(self, team_service, make_driver, team_selector):
        driver = make_driver()
        team_service.delete_driver(driver.id)

        with pytest.raises(DriverNotFoundError):
            team_selector.get_driver(driver.id)

    def test_delete_with_requests_rejected(
        self, team_service, make_transporter, make_request
    ):
        transporter = make_transporter()
        team_service.assign_transporter_to_request(transporter.id, make_request().id)

        with pytest.raises(AssociatedRequestsError) as exc_info:
            team_service.delete_transporter(transporter.id)
        assert exc_info.value.count == 1
        assert exc_info.value.code == "ASSOCIATED_REQUESTS"

    def test_delete_not_found(self, team_service):
        with pytest.raises(DriverNotFoundError):
            team_service.delete_driver(uuid4())


class TestToggleAvailability:
    """Tests for the availability toggle and its guard."""

    def test_available_member_becomes_unavailable(self, team_service, make_driver):
        driver = make_driver()
        assert team_service.toggle_driver_availability(driver.id).available is False

    def test_available_member_with_active_request_can_go_unavailable(
        self, team_service, make_driver, make_request
    ):
        """The guard only looks at members that are currently unavailable."""
        driver = make_driver()
        team_service.assign_driver_to_request(driver.id, make_request().id)

        assert team_service.toggle_driver_availability(driver.id).available is False

    def test_unavailable_member_with_active_request_rejected(
        self, team_service, make_driver, make_request
    ):
        driver = make_driver()
        team_service.assign_driver_to_request(driver.id, make_request().id)
        team_service.toggle_driver_availability(driver.id)

        with pytest.raises(ActiveRequestsError):
            team_service.toggle_driver_availability(driver.id)

    @pytest.mark.parametrize("status", ["COMPLETED", "CANCELLED"])
    def test_finished_requests_do_not_block(
        self, team_service, request_service, make_transporter, make_request, status
    ):
        transporter = make_transporter()
        request = make_request()
        team_service.assign_transporter_to_request(transporter.id, request.id)
        team_service.toggle_transporter_availability(transporter.id)
        request_service.update_status(request.id, status)

        info = team_service.toggle_transporter_availability(transporter.id)
        assert info.available is True

    def test_toggle_not_found(self, team_service):
        with pytest.raises(TransporterNotFoundError):
            team_service.toggle_transporter_availability(uuid4())


class TestAssignToRequest:
    """Tests for assign_*_to_request."""

    def test_links_both_sides(self, team_service, make_driver, make_request, request_selector):
        driver = make_driver()
        request = make_request()

        info = team_service.assign_driver_to_request(driver.id, request.id)

        assert info.request_ids == (request.id,)
        assert request_selector.get_by_id(request.id).driver_id == driver.id

    def test_second_role_sets_assigned(
        self, team_service, make_driver, make_transporter, make_request, request_selector
    ):
        request = make_request()
        team_service.assign_driver_to_request(make_driver().id, request.id)
        assert request_selector.get_by_id(request.id).status == "PENDING"

        team_service.assign_transporter_to_request(make_transporter().id, request.id)
        assert request_selector.get_by_id(request.id).status == RequestStatus.ASSIGNED.value

    def test_unavailable_member_rejected(self, team_service, make_driver, make_request):
        driver = make_driver(available=False)
        with pytest.raises(TeamMemberUnavailableError):
            team_service.assign_driver_to_request(driver.id, make_request().id)

    def test_filled_role_rejected(self, team_service, make_driver, make_request):
        request = make_request()
        team_service.assign_driver_to_request(make_driver().id, request.id)

        with pytest.raises(RoleAlreadyAssignedError) as exc_info:
            team_service.assign_driver_to_request(make_driver().id, request.id)
        assert exc_info.value.role == "Driver"

    def test_missing_request(self, team_service, make_transporter):
        with pytest.raises(RequestNotFoundError):
            team_service.assign_transporter_to_request(make_transporter().id, uuid4())

    def test_missing_member(self, team_service, make_request):
        with pytest.raises(DriverNotFoundError):
            team_service.assign_driver_to_request(uuid4(), make_request().id)


class TestUnassignFromRequest:
    """Tests for unassign_*_from_request."""

    def test_unlinks_and_resets_to_pending(
        self, team_service, make_driver, make_transporter, make_request,
        request_selector, team_selector,
    ):
        driver = make_driver()
        request = make_request()
        team_service.assign_driver_to_request(driver.id, request.id)
        team_service.assign_transporter_to_request(make_transporter().id, request.id)

        team_service.unassign_driver_from_request(driver.id, request.id)

        after = request_selector.get_by_id(request.id)
        assert after.driver_id is None
        assert after.transporter_id is not None
        assert after.status == RequestStatus.PENDING.value
        assert team_selector.get_driver(driver.id).request_ids == ()

    def test_reset_is_unconditional(
        self, team_service, request_service, make_transporter, make_request, request_selector
    ):
        transporter = make_transporter()
        request = make_request()
        team_service.assign_transporter_to_request(transporter.id, request.id)
        request_service.update_status(request.id, "IN_PROGRESS")

        team_service.unassign_transporter_from_request(transporter.id, request.id)

        assert request_selector.get_by_id(request.id).status == "PENDING"

    def test_member_not_on_request_rejected(self, team_service, make_driver, make_request):
        request = make_request()
        team_service.assign_driver_to_request(make_driver().id, request.id)

        with pytest.raises(TeamMemberNotAssignedError):
            team_service.unassign_driver_from_request(make_driver().id, request.id)

    @pytest.mark.parametrize("status", ["CONFIRMED", "COMPLETED"])
    def test_locked_status_rejected(
        self, team_service, request_service, make_driver, make_request, status
    ):
        driver = make_driver()
        request = make_request()
        team_service.assign_driver_to_request(driver.id, request.id)
        request_service.update_status(request.id, status)

        with pytest.raises(UnassignmentNotAllowedError) as exc_info:
            team_service.unassign_driver_from_request(driver.id, request.id)
        assert exc_info.value.status == status

    def test_cancelled_request_allows_unassign(
        self, team_service, request_service, make_driver, make_request
    ):
        driver = make_driver()
        request = make_request()
        team_service.assign_driver_to_request(driver.id, request.id)
        request_service.update_status(request.id, "CANCELLED")

        team_service.unassign_driver_from_request(driver.id, request.id)

    def test_missing_request(self, team_service, make_driver):
        with pytest.raises(RequestNotFoundError):
            team_service.unassign_driver_from_request(make_driver().id, uuid4())

    def test_missing_member(self, team_service, make_request):
        with pytest.raises(TransporterNotFoundError):
            team_service.unassign_transporter_from_request(uuid4(), make_request().id)
