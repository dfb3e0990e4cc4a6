from app.core.config import Settings
from app.services.access_validator import (
    AccessPolicy,
    LocationEvidence,
    NetworkEvidence,
    evaluate_access,
    haversine_m,
    is_valid_university_bssid,
    is_valid_university_ip,
    is_within_campus,
)

CFG = Settings(UNIVERSITY_IP_PREFIX="192.168", UNIVERSITY_BSSID_PREFIX="AA:BB:CC")
ON_CAMPUS = LocationEvidence(latitude=21.0050, longitude=105.8440, accuracy=20.0)
OFF_CAMPUS = LocationEvidence(latitude=10.7769, longitude=106.7009)  # centro de HCMC


def test_haversine_known_distance():
    # ~111 km por grau de latitude
    d = haversine_m(21.0, 105.0, 22.0, 105.0)
    assert 110_000 < d < 112_000
    assert haversine_m(21.0, 105.0, 21.0, 105.0) == 0


def test_ip_and_bssid_prefix_are_case_insensitive():
    assert is_valid_university_ip("192.168.10.4", CFG)
    assert not is_valid_university_ip("10.0.0.4", CFG)
    assert not is_valid_university_ip(None, CFG)

    assert is_valid_university_bssid("aa:bb:cc:11:22:33", CFG)
    assert not is_valid_university_bssid("11:22:33:44:55:66", CFG)


def test_bssid_is_not_evidence_without_configured_prefix():
    cfg = Settings(UNIVERSITY_BSSID_PREFIX=None)
    assert not is_valid_university_bssid("aa:bb:cc:11:22:33", cfg)


def test_campus_radius():
    assert is_within_campus(ON_CAMPUS, CFG)
    assert not is_within_campus(OFF_CAMPUS, CFG)
    assert not is_within_campus(None, CFG)
    assert not is_within_campus(LocationEvidence(latitude=float("nan"), longitude=105.8), CFG)


def test_strict_policy_needs_network_and_location():
    network = NetworkEvidence(ip_address="192.168.1.2")

    decision = evaluate_access(network, ON_CAMPUS, policy=AccessPolicy.STRICT, cfg=CFG)
    assert decision.allowed
    assert decision.validation_methods() == {"ip_address": True, "bssid": False, "location": True}

    assert not evaluate_access(network, None, policy=AccessPolicy.STRICT, cfg=CFG).allowed
    assert not evaluate_access(network, OFF_CAMPUS, policy=AccessPolicy.STRICT, cfg=CFG).allowed

    outside = NetworkEvidence(ip_address="172.16.0.9")
    assert not evaluate_access(outside, ON_CAMPUS, policy=AccessPolicy.STRICT, cfg=CFG).allowed


def test_network_only_policy_accepts_ip_or_bssid():
    by_ip = evaluate_access(NetworkEvidence(ip_address="192.168.7.7"), policy=AccessPolicy.NETWORK_ONLY, cfg=CFG)
    assert by_ip.allowed and by_ip.network

    by_bssid = evaluate_access(NetworkEvidence(bssid="AA:BB:CC:00:00:01"), policy=AccessPolicy.NETWORK_ONLY, cfg=CFG)
    assert by_bssid.allowed and by_bssid.bssid

    assert not evaluate_access(NetworkEvidence(ssid="UNITREE"), policy=AccessPolicy.NETWORK_ONLY, cfg=CFG).allowed
    assert not evaluate_access(None, policy=AccessPolicy.NETWORK_ONLY, cfg=CFG).allowed


def test_network_key_prefers_bssid():
    assert NetworkEvidence(ip_address="192.168.1.1", bssid="AA:BB").key == "aa:bb"
    assert NetworkEvidence(ip_address="192.168.1.1").key == "192.168.1.1"
    assert NetworkEvidence().key is None
