import re

from drmlicense.drm.request_id import generate_request_id


def test_request_id_is_32_lowercase_hex():
    """Request ids are 16 random bytes rendered as lowercase hex"""
    for _ in range(100):
        request_id = generate_request_id()
        assert re.fullmatch(r"[0-9a-f]{32}", request_id)


def test_request_ids_do_not_repeat():
    """10,000 sampled ids should all be distinct"""
    ids = {generate_request_id() for _ in range(10000)}
    assert len(ids) == 10000
