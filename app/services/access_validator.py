# app/services/access_validator.py
"""
Validação de acesso ao WiFi do campus.

Funções puras: nada aqui toca no banco nem muda estado. A única "falha"
possível é devolver allowed=False.

Políticas:
- STRICT: exige evidência de rede E de localização (entrada /wifi/start)
- NETWORK_ONLY: aceita só a evidência de rede (entrada legada e background sync)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from app.core.config import Settings, settings

EARTH_RADIUS_M = 6_371_000.0


class AccessPolicy(str, Enum):
    STRICT = "strict"
    NETWORK_ONLY = "network_only"


@dataclass(frozen=True)
class NetworkEvidence:
    ip_address: Optional[str] = None
    ssid: Optional[str] = None
    bssid: Optional[str] = None

    @property
    def key(self) -> Optional[str]:
        """Mesmo critério de WifiSession.network_key (BSSID > IP)."""
        key = self.bssid or self.ip_address
        return key.lower() if key else None


@dataclass(frozen=True)
class LocationEvidence:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    ip_address: bool = False
    bssid: bool = False
    location: bool = False

    @property
    def network(self) -> bool:
        return self.ip_address or self.bssid

    def validation_methods(self) -> Dict[str, bool]:
        return {
            "ip_address": self.ip_address,
            "bssid": self.bssid,
            "location": self.location,
        }


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distância de Haversine em metros entre dois pontos lat/lon (graus)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def _has_prefix(value: Optional[str], prefix: Optional[str]) -> bool:
    if not value or not prefix:
        return False
    return value.strip().lower().startswith(prefix.strip().lower())


def is_valid_university_ip(ip_address: Optional[str], cfg: Settings = settings) -> bool:
    return _has_prefix(ip_address, cfg.UNIVERSITY_IP_PREFIX)


def is_valid_university_bssid(bssid: Optional[str], cfg: Settings = settings) -> bool:
    # sem prefixo configurado, BSSID não conta como evidência
    return _has_prefix(bssid, cfg.UNIVERSITY_BSSID_PREFIX)


def is_within_campus(location: Optional[LocationEvidence], cfg: Settings = settings) -> bool:
    if location is None:
        return False
    lat, lng = location.latitude, location.longitude
    if lat is None or lng is None or not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return False

    distance = haversine_m(lat, lng, cfg.CAMPUS_LATITUDE, cfg.CAMPUS_LONGITUDE)
    return distance <= cfg.CAMPUS_RADIUS_METERS


def evaluate_access(
    network: Optional[NetworkEvidence],
    location: Optional[LocationEvidence] = None,
    *,
    policy: AccessPolicy = AccessPolicy.STRICT,
    cfg: Settings = settings,
) -> AccessDecision:
    network = network or NetworkEvidence()
    ip_ok = is_valid_university_ip(network.ip_address, cfg)
    bssid_ok = is_valid_university_bssid(network.bssid, cfg)
    location_ok = is_within_campus(location, cfg)

    network_ok = ip_ok or bssid_ok
    if policy == AccessPolicy.STRICT:
        allowed = network_ok and location_ok
    else:
        allowed = network_ok

    return AccessDecision(
        allowed=allowed,
        ip_address=ip_ok,
        bssid=bssid_ok,
        location=location_ok,
    )
