"""Tests for the registry service."""

import threading

import pytest

from ethpm_registry.registry.errors import (
    DuplicateVersion,
    EmptyField,
    InvalidNameSyntax,
    InvalidTransferTarget,
    NotFound,
    RegistryError,
    Unauthorized,
)
from ethpm_registry.registry.models import (
    PackageOwnershipTransferred,
    PackagePublished,
    release_id,
)
from ethpm_registry.registry.service import RegistryService

ALICE = "0xA11CE"
BOB = "0xB0B"
URI = "ipfs://QmbeVyFLSuEUxiXKwSsEjef6icpdTdA4kGG9BcrJXKNKUW"


def _service() -> RegistryService:
    return RegistryService()


def test_publish_and_get_uri():
    svc = _service()
    release = svc.publish("owned", "1.0.0", URI, ALICE)

    assert release.qualified_id == "owned@1.0.0"
    assert svc.get_package_uri("owned", "1.0.0") == URI
    assert svc.get_package_uri("owned", "1.0.0") == URI
    assert svc.package_exists("owned", "1.0.0")


def test_first_publish_claims_ownership():
    svc = _service()
    assert svc.get_owner("owned") is None

    svc.publish("owned", "1.0.0", URI, ALICE)
    assert svc.get_owner("owned") == ALICE


def test_versions_in_publish_order():
    svc = _service()
    for v in ("1.0.0", "1.1.0", "2.0.0"):
        svc.publish("owned", v, f"ipfs://{v}", ALICE)

    assert svc.get_versions("owned") == ["1.0.0", "1.1.0", "2.0.0"]


def test_versions_are_not_sorted():
    svc = _service()
    for v in ("2.0.0", "1.0.0", "10.0.0"):
        svc.publish("owned", v, URI, ALICE)

    assert svc.get_versions("owned") == ["2.0.0", "1.0.0", "10.0.0"]


def test_unknown_package_queries_do_not_fail():
    svc = _service()
    assert svc.get_versions("nothing") == []
    assert svc.get_owner("nothing") is None
    assert not svc.package_exists("nothing", "1.0.0")
    assert svc.get_package("nothing") is None


def test_get_uri_not_found():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)

    with pytest.raises(NotFound) as exc:
        svc.get_package_uri("owned", "2.0.0")
    assert exc.value.code == "NOT_FOUND"


def test_duplicate_version_rejected_regardless_of_caller():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)

    with pytest.raises(DuplicateVersion):
        svc.publish("owned", "1.0.0", "ipfs://other", ALICE)
    with pytest.raises(DuplicateVersion):
        svc.publish("owned", "1.0.0", "ipfs://other", BOB)

    assert svc.get_package_uri("owned", "1.0.0") == URI
    assert svc.get_versions("owned") == ["1.0.0"]


def test_non_owner_cannot_publish():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)

    with pytest.raises(Unauthorized) as exc:
        svc.publish("owned", "2.0.0", URI, BOB)
    assert exc.value.code == "UNAUTHORIZED"
    assert not svc.package_exists("owned", "2.0.0")
    assert svc.get_versions("owned") == ["1.0.0"]


def test_transfer_then_new_owner_publishes():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)

    previous = svc.transfer_ownership("owned", BOB, ALICE)
    assert previous == ALICE
    assert svc.get_owner("owned") == BOB

    svc.publish("owned", "2.0.0", URI, BOB)
    with pytest.raises(Unauthorized):
        svc.publish("owned", "3.0.0", URI, ALICE)


def test_transfer_keeps_releases():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)
    svc.publish("owned", "1.1.0", "ipfs://two", ALICE)

    svc.transfer_ownership("owned", BOB, ALICE)

    assert svc.get_versions("owned") == ["1.0.0", "1.1.0"]
    assert svc.get_package_uri("owned", "1.1.0") == "ipfs://two"


def test_transfer_by_non_owner_rejected():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)

    with pytest.raises(Unauthorized):
        svc.transfer_ownership("owned", BOB, BOB)
    assert svc.get_owner("owned") == ALICE


def test_transfer_unclaimed_package_rejected():
    svc = _service()
    with pytest.raises(Unauthorized):
        svc.transfer_ownership("owned", BOB, ALICE)
    assert svc.get_owner("owned") is None


@pytest.mark.parametrize("target", ["", "   ", None])
def test_transfer_to_empty_owner_rejected(target):
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)

    with pytest.raises(InvalidTransferTarget) as exc:
        svc.transfer_ownership("owned", target, ALICE)
    assert exc.value.code == "INVALID_TRANSFER_TARGET"
    assert svc.get_owner("owned") == ALICE


@pytest.mark.parametrize(
    "args, field_name",
    [
        (("", "1.0.0", URI, ALICE), "name"),
        (("owned", "", URI, ALICE), "version"),
        (("owned", "1.0.0", "", ALICE), "manifest_uri"),
        (("owned", "1.0.0", URI, ""), "caller"),
    ],
)
def test_publish_empty_field(args, field_name):
    svc = _service()
    with pytest.raises(EmptyField) as exc:
        svc.publish(*args)
    assert exc.value.field_name == field_name
    assert svc.list_packages() == []


@pytest.mark.parametrize("name", ["Owned", "safe_math", "safe math", "owned!"])
def test_publish_invalid_name(name):
    svc = _service()
    with pytest.raises(InvalidNameSyntax):
        svc.publish(name, "1.0.0", URI, ALICE)
    assert svc.get_owner(name) is None


def test_error_codes_are_stable():
    assert EmptyField("name").code == "EMPTY_FIELD"
    assert InvalidNameSyntax("X").code == "INVALID_NAME_SYNTAX"
    assert str(DuplicateVersion("owned", "1.0.0")).startswith("[DUPLICATE_VERSION]")
    assert issubclass(NotFound, RegistryError)


def test_version_string_is_opaque():
    svc = _service()
    svc.publish("owned", "not-semver build#7", URI, ALICE)
    assert svc.get_versions("owned") == ["not-semver build#7"]


def test_list_packages_in_claim_order():
    svc = _service()
    svc.publish("zeta", "1.0.0", URI, ALICE)
    svc.publish("alpha", "1.0.0", URI, BOB)
    svc.publish("zeta", "1.1.0", URI, ALICE)

    assert svc.list_packages() == ["zeta", "alpha"]
    assert svc.package_count() == 2


def test_get_package_snapshot():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)
    svc.publish("owned", "1.1.0", "ipfs://two", ALICE)

    record = svc.get_package("owned")
    assert record.owner == ALICE
    assert record.versions == ("1.0.0", "1.1.0")
    assert record.latest_version == "1.1.0"
    assert [r.manifest_uri for r in record.releases] == [URI, "ipfs://two"]


def test_release_id():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)

    rid = svc.get_release_id("owned", "1.0.0")
    assert rid == release_id("owned", "1.0.0")
    assert len(rid) == 64
    assert rid != release_id("owned", "1.0.1")
    with pytest.raises(NotFound):
        svc.get_release_id("owned", "9.9.9")


def test_notifications_emitted_on_success_only():
    svc = _service()
    events = []
    svc.subscribe(events.append)

    svc.publish("owned", "1.0.0", URI, ALICE)
    with pytest.raises(DuplicateVersion):
        svc.publish("owned", "1.0.0", URI, ALICE)
    svc.transfer_ownership("owned", BOB, ALICE)

    assert len(events) == 2
    published, transferred = events
    assert isinstance(published, PackagePublished)
    assert (published.name, published.version, published.manifest_uri, published.caller) == (
        "owned",
        "1.0.0",
        URI,
        ALICE,
    )
    assert isinstance(transferred, PackageOwnershipTransferred)
    assert (transferred.previous_owner, transferred.new_owner) == (ALICE, BOB)


def test_failing_subscriber_does_not_undo_publish():
    svc = _service()

    def boom(notification):
        raise RuntimeError("listener down")

    svc.subscribe(boom)
    svc.publish("owned", "1.0.0", URI, ALICE)
    assert svc.package_exists("owned", "1.0.0")


def test_concurrent_first_publish_has_one_owner():
    svc = _service()
    callers = [f"0x{i:04x}" for i in range(16)]
    barrier = threading.Barrier(len(callers))
    outcomes = {}

    def attempt(caller, index):
        barrier.wait()
        try:
            svc.publish("contested", f"1.0.{index}", URI, caller)
            outcomes[caller] = "ok"
        except Unauthorized:
            outcomes[caller] = "unauthorized"

    threads = [
        threading.Thread(target=attempt, args=(c, i)) for i, c in enumerate(callers)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winners = [c for c, o in outcomes.items() if o == "ok"]
    assert len(winners) == 1
    assert svc.get_owner("contested") == winners[0]
    assert len(svc.get_versions("contested")) == 1


def test_concurrent_duplicate_version_has_one_winner():
    svc = _service()
    svc.publish("owned", "1.0.0", URI, ALICE)
    barrier = threading.Barrier(8)
    results = []

    def attempt(i):
        barrier.wait()
        try:
            svc.publish("owned", "2.0.0", f"ipfs://{i}", ALICE)
            results.append("ok")
        except DuplicateVersion:
            results.append("duplicate")

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("duplicate") == 7
    assert svc.get_versions("owned") == ["1.0.0", "2.0.0"]


def test_name_locks_are_released():
    svc = _service()
    for i in range(100):
        with pytest.raises(Unauthorized):
            svc.transfer_ownership(f"unclaimed-{i}", BOB, ALICE)
    svc.publish("owned", "1.0.0", URI, ALICE)
    svc.transfer_ownership("owned", BOB, ALICE)

    assert len(svc._locks) == 0
