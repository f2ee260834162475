import base64

import pytest
from PIL import Image

from songcraft.preprocessing.image import (
    PNG_DATA_URI_PREFIX,
    data_uri_payload,
    decode_data_uri,
    image_file_to_data_uri,
    image_size,
    solid_cover_png,
    to_data_uri,
)


class TestDataUris:
    def test_encode(self):
        uri = to_data_uri(b"abc")
        assert uri == PNG_DATA_URI_PREFIX + base64.b64encode(b"abc").decode()

    def test_payload_strips_prefix(self):
        assert data_uri_payload("data:image/png;base64,QUJD") == "QUJD"
        assert decode_data_uri("data:image/png;base64,QUJD") == b"ABC"

    def test_payload_requires_comma(self):
        with pytest.raises(ValueError):
            data_uri_payload("QUJD")


class TestPillowHelpers:
    def test_solid_cover_is_wide(self):
        width, height = image_size(to_data_uri(solid_cover_png()))
        assert (width, height) == (1280, 720)
        assert width * 9 == height * 16

    def test_file_converted_to_png(self, tmp_path):
        """Any readable image is re-encoded as PNG."""
        path = tmp_path / "photo.jpg"
        Image.new("RGB", (64, 36), (10, 20, 30)).save(path, format="JPEG")

        uri = image_file_to_data_uri(path)

        assert uri.startswith(PNG_DATA_URI_PREFIX)
        assert decode_data_uri(uri).startswith(b"\x89PNG")
        assert image_size(uri) == (64, 36)
