import base64
from unittest.mock import MagicMock, patch

import pytest

from blogapi.core.exceptions import InvalidParameterError
from blogapi.repositories.attachment_repository import AttachmentRepository
from blogapi.services.attachment_service import AttachmentService
from tests.factories import make_image


@pytest.fixture
def attachment_service(db_session):
    return AttachmentService(AttachmentRepository(db_session))


class TestDecodeImage:
    def test_plain_base64(self):
        assert AttachmentService.decode_image(base64.b64encode(b"abc").decode()) == (
            b"abc"
        )

    def test_data_uri_prefix(self):
        value = "data:image/png;base64," + base64.b64encode(b"abc").decode()

        assert AttachmentService.decode_image(value) == b"abc"

    def test_invalid_base64(self):
        with pytest.raises(InvalidParameterError):
            AttachmentService.decode_image("!!not base64!!")

    def test_too_large(self):
        with patch("blogapi.services.attachment_service.settings") as mock_settings:
            mock_settings.MAX_IMAGE_BYTES = 2
            with pytest.raises(InvalidParameterError):
                AttachmentService.decode_image(base64.b64encode(b"abc").decode())


class TestInspectImage:
    @pytest.mark.parametrize(
        "fmt,mime", [("PNG", "image/png"), ("JPEG", "image/jpeg"), ("GIF", "image/gif")]
    )
    def test_supported_formats(self, fmt, mime):
        data = base64.b64decode(make_image(fmt, size=(8, 5)))

        assert AttachmentService.inspect_image(data) == (mime, 8, 5)

    def test_unsupported_format(self):
        data = base64.b64decode(make_image("BMP"))

        with pytest.raises(InvalidParameterError):
            AttachmentService.inspect_image(data)

    def test_not_an_image(self):
        with pytest.raises(InvalidParameterError):
            AttachmentService.inspect_image(b"plain text")


class TestCreateImageAttachment:
    def test_stores_attachment(self, attachment_service, editor):
        attachment = attachment_service.create_image_attachment(
            editor, "Name", "Description", make_image()
        )

        assert attachment.id is not None
        assert attachment.user_id == editor.id
        assert attachment.mime == "image/png"
        assert attachment.size == len(attachment.data)

    def test_invalid_image_stores_nothing(self):
        repository = MagicMock(spec=AttachmentRepository)
        service = AttachmentService(repository)

        with pytest.raises(InvalidParameterError):
            service.create_image_attachment(MagicMock(id=1), "n", "d", "aGVsbG8=")

        repository.create.assert_not_called()
