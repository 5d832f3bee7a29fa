import json
from typing import Callable

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from opsdash.config import AnalyticsSettings, DashboardSettings
from tests.utils.upstream import FROZEN_NOW


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    return rsa_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture()
def service_account_json(private_key_pem: str) -> str:
    return json.dumps(
        {
            "type": "service_account",
            "project_id": "ops-dashboard",
            "client_email": "reporter@ops-dashboard.iam.gserviceaccount.com",
            "private_key": private_key_pem,
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    )


@pytest.fixture()
def frozen_clock() -> Callable[[], float]:
    return lambda: FROZEN_NOW


@pytest.fixture()
def api_key_settings() -> DashboardSettings:
    return DashboardSettings(
        analytics=AnalyticsSettings(property_id="123456", api_key="static-key"),
    )

