import pytest

from backend.passwords import hash_password, verify_password
from backend.registration import (
    CapacityReachedError,
    DuplicateEmailError,
    InvalidCredentialsError,
    RegistrationError,
    RegistrationService,
    assign_group,
    distribution_report,
)
from backend.store import AccountStore


@pytest.fixture
def service(tmp_path):
    groups = ["a", "b", "c"]
    return RegistrationService(AccountStore(tmp_path / "accounts.json", groups), groups, 2)


def register(service, email, notify=None):
    return service.register("Grace", email, "555-0101", "pw", "pw", notify=notify)


class TestAssignGroup:
    def test_first_fit(self):
        assert assign_group({"a": 0, "b": 0}, ["a", "b"], 2) == ("a", 1)
        assert assign_group({"a": 2, "b": 0}, ["a", "b"], 2) == ("b", 0)

    def test_skips_full_groups_in_order(self):
        assert assign_group({"a": 2, "b": 2, "c": 1}, ["a", "b", "c"], 2) == ("c", 0)

    def test_none_when_full(self):
        assert assign_group({"a": 2, "b": 2}, ["a", "b"], 2) is None

    def test_missing_counts_are_empty(self):
        assert assign_group({}, ["x"], 1) == ("x", 0)


def test_groups_fill_in_order(service):
    groups = [register(service, f"user{i}@example.com")["group_id"] for i in range(6)]
    assert groups == ["a", "a", "b", "b", "c", "c"]

    with pytest.raises(CapacityReachedError, match="All groups are full"):
        register(service, "late@example.com")

    state = service.store.load()
    assert state["group_counts"] == {"a": 2, "b": 2, "c": 2}
    assert state["last_assigned_group_index"] == 0


def test_password_is_hashed(service):
    register(service, "grace@example.com")
    record = service.store.load()["users"]["grace@example.com"]
    assert "password" not in record
    assert record["password_hash"].startswith("scrypt$")
    assert verify_password("pw", record["password_hash"])


def test_duplicate_email(service):
    register(service, "grace@example.com")
    with pytest.raises(DuplicateEmailError):
        register(service, "Grace@Example.com")
    assert service.distribution()["total"] == 1


@pytest.mark.parametrize("fields, message", [
    (("", "x@example.com", "1", "pw", "pw"), "Please fill in all fields"),
    (("Grace", "x@example.com", " ", "pw", "pw"), "Please fill in all fields"),
    (("Grace", "x@example.com", "1", "pw", "wp"), "Passwords do not match"),
])
def test_validation(service, fields, message):
    with pytest.raises(RegistrationError, match=message):
        service.register(*fields)
    assert service.store.load()["users"] == {}


def test_notifications(service):
    sent = []
    register(service, "grace@example.com", notify=sent.append)

    assert len(sent) == 1
    assert sent[0].startswith("✅ NEW ACCOUNT CREATED")
    assert "Assigned Group: a" in sent[0]
    assert "Group a: 1/2 (50%)" in sent[0]


def test_capacity_alert(tmp_path):
    service = RegistrationService(AccountStore(tmp_path / "s.json", ["only"]), ["only"], 1)
    register(service, "first@example.com")
    sent = []

    with pytest.raises(CapacityReachedError):
        register(service, "second@example.com", notify=sent.append)

    assert len(sent) == 1
    assert "MAXIMUM CAPACITY REACHED" in sent[0]


def test_login(service):
    register(service, "grace@example.com")
    assert service.login(" GRACE@example.com", "pw")["group_id"] == "a"

    with pytest.raises(InvalidCredentialsError):
        service.login("grace@example.com", "nope")
    with pytest.raises(InvalidCredentialsError):
        service.login("nobody@example.com", "pw")


def test_distribution_report_rounds_percentages():
    state = {"group_counts": {"a": 1, "b": 0}}
    assert distribution_report(state, ["a", "b"], 3) == "Group a: 1/3 (33%)\nGroup b: 0/3 (0%)"


def test_distribution_report_rounds_halves_up():
    state = {"group_counts": {"a": 1, "b": 3}}
    assert distribution_report(state, ["a", "b"], 8) == "Group a: 1/8 (13%)\nGroup b: 3/8 (38%)"


def test_verify_password_rejects_garbage():
    encoded = hash_password("hunter2")
    assert verify_password("hunter2", encoded)
    assert not verify_password("hunter3", encoded)
    assert not verify_password("hunter2", "plain-text")
    assert not verify_password("hunter2", "md5$1$2$3$abc$def")
