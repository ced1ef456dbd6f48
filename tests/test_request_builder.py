import base64
import json
from urllib.parse import parse_qs, urlsplit

import pytest

from drmlicense.drm.header_store import KeyRequestHeaders
from drmlicense.drm.request_builder import (
    build_key_request_headers,
    build_provision_url,
    build_query_url,
    encode_custom_data,
    select_license_url,
)
from drmlicense.drm.schemes import PLAYREADY_SOAP_ACTION, DrmScheme
from drmlicense.drm.types import CustomData
from drmlicense.errors import ConfigurationError


class TestKeyRequestHeaders:
    """Header derivation order for key requests"""

    def test_playready_headers(self):
        headers = build_key_request_headers(DrmScheme.PLAYREADY)
        assert headers == {"Content-Type": "text/xml", "SOAPAction": PLAYREADY_SOAP_ACTION}

    def test_clearkey_headers(self):
        assert build_key_request_headers(DrmScheme.CLEARKEY) == {"Content-Type": "application/json"}

    def test_unknown_scheme_uses_octet_stream(self):
        headers = build_key_request_headers(DrmScheme.from_name("something-else"))
        assert headers == {"Content-Type": "application/octet-stream"}

    def test_custom_data_and_auth_token(self):
        headers = build_key_request_headers(
            DrmScheme.WIDEVINE, custom_data="abc=", auth_token="token-1"
        )
        assert headers["dt-custom-data"] == "abc="
        assert headers["x-dt-auth-token"] == "token-1"

    def test_auth_token_absent_when_not_configured(self):
        headers = build_key_request_headers(DrmScheme.WIDEVINE, custom_data="abc=")
        assert "x-dt-auth-token" not in headers

    def test_custom_headers_merged_last(self):
        """Operator configured headers override scheme defaults"""
        store = KeyRequestHeaders({"Content-Type": "application/custom", "X-Tenant": "t1"})
        headers = build_key_request_headers(DrmScheme.PLAYREADY, request_headers=store)
        assert headers["Content-Type"] == "application/custom"
        assert headers["SOAPAction"] == PLAYREADY_SOAP_ACTION
        assert headers["X-Tenant"] == "t1"

    def test_request_id_header_is_not_persisted(self):
        store = KeyRequestHeaders()
        headers = build_key_request_headers(DrmScheme.WIDEVINE, request_headers=store, request_id="ab" * 16)
        assert headers["logRequestId"] == "ab" * 16
        assert "logRequestId" not in store

    def test_stored_request_id_cannot_replace_fresh_one(self):
        store = KeyRequestHeaders({"logRequestId": "operator-fixed"})
        headers = build_key_request_headers(DrmScheme.WIDEVINE, request_headers=store, request_id="cd" * 16)
        assert headers["logRequestId"] == "cd" * 16


class TestCustomData:

    def test_encoded_as_compact_base64_json(self):
        encoded = encode_custom_data(CustomData(user_id="u1", session_id="s1", merchant="m1"))
        assert "\n" not in encoded
        decoded = base64.b64decode(encoded).decode("utf-8")
        assert decoded == '{"userId":"u1","sessionId":"s1","merchant":"m1"}'
        assert json.loads(decoded) == {"userId": "u1", "sessionId": "s1", "merchant": "m1"}

    def test_unserializable_field_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            encode_custom_data(CustomData(user_id=object(), session_id="s1", merchant="m1"))


class TestQueryUrl:

    def test_request_id_always_present(self):
        url = build_query_url("https://lic.example.com/proxy/", "ff" * 16)
        assert url == "https://lic.example.com/proxy/?logRequestId=" + "ff" * 16

    def test_asset_and_variant_appended_when_present(self):
        url = build_query_url("https://lic.example.com/proxy/", "id1", asset_id="asset", variant_id="hd")
        query = parse_qs(urlsplit(url).query)
        assert query == {"logRequestId": ["id1"], "assetId": ["asset"], "variantId": ["hd"]}

    def test_empty_ids_omitted(self):
        url = build_query_url("https://lic.example.com/proxy/", "id1", asset_id="", variant_id=None)
        assert "assetId" not in url
        assert "variantId" not in url

    def test_existing_query_kept(self):
        url = build_query_url("https://lic.example.com/proxy/?specConform=true", "id1")
        assert url == "https://lic.example.com/proxy/?specConform=true&logRequestId=id1"


class TestLicenseUrlSelection:

    def test_request_url_preferred(self):
        assert select_license_url("https://a/lic", "https://default/lic") == "https://a/lic"

    def test_default_used_when_request_url_empty(self):
        assert select_license_url("", "https://default/lic") == "https://default/lic"
        assert select_license_url(None, "https://default/lic") == "https://default/lic"

    def test_force_default(self):
        assert select_license_url("https://a/lic", "https://default/lic", force_default=True) == "https://default/lic"

    def test_no_url_at_all(self):
        with pytest.raises(ConfigurationError):
            select_license_url("", "")


class TestProvisionUrl:

    def test_signed_request_appended(self):
        url = build_provision_url("https://prov.example.com/certificate?key=k", b"signed-data")
        assert url == "https://prov.example.com/certificate?key=k&signedRequest=signed-data"

    def test_missing_default_url(self):
        with pytest.raises(ConfigurationError):
            build_provision_url("", b"data")
