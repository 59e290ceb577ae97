"""Tests for picking a downloadable file out of message media."""
import logging

import pytest
from telethon.tl.types import (
    DocumentEmpty,
    GeoPoint,
    InputDocumentFileLocation,
    InputPhotoFileLocation,
    MessageMediaDocument,
    MessageMediaGeo,
    MessageMediaPhoto,
    MessageMediaUnsupported,
    PhotoCachedSize,
    PhotoEmpty,
    PhotoPathSize,
    PhotoSize,
    PhotoSizeProgressive,
    PhotoStrippedSize,
)

from tgsalvage.config import MediaKind
from tgsalvage.errors import InvalidMedia, NoResolvableSize, UnsupportedMedia
from tgsalvage.services.locator import extension_from_mime, locate, pick_largest_size

from .factories import document_media, make_photo, photo_media


class TestDocuments:

    def test_filename_attribute_wins(self):
        resource = locate(document_media(doc_id=10, filename="Holiday Video.mp4", mime_type="video/mp4"))

        assert resource.filename == "Holiday Video.mp4"
        assert resource.kind is MediaKind.DOCUMENT
        assert resource.media_id == 10
        assert resource.dc_id == 2
        assert resource.size == 2048
        assert isinstance(resource.location, InputDocumentFileLocation)
        assert resource.location.id == 10
        assert resource.location.access_hash == 555
        assert resource.location.file_reference == b"ref"
        assert resource.location.thumb_size == ""

    def test_filename_attribute_is_sanitized(self):
        resource = locate(document_media(filename="../../etc/passwd"))
        assert resource.filename == "_.._etc_passwd"

    def test_empty_filename_attribute_falls_back_to_mime(self):
        resource = locate(document_media(doc_id=11, filename="", mime_type="audio/ogg"))
        assert resource.filename == "11.ogg"

    def test_name_from_mime_when_no_attribute(self):
        resource = locate(document_media(doc_id=12, mime_type="image/PNG; charset=binary"))
        assert resource.filename == "12.png"

    def test_empty_document_is_invalid(self):
        with pytest.raises(InvalidMedia):
            locate(MessageMediaDocument(document=DocumentEmpty(id=5)), message_id=3)

    def test_missing_document_is_invalid(self):
        with pytest.raises(InvalidMedia):
            locate(MessageMediaDocument(document=None))

    def test_empty_file_reference_only_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            resource = locate(document_media(doc_id=13, file_reference=b""), message_id=9)

        assert resource.location.file_reference == b""
        assert "empty file reference" in caplog.text


class TestExtensionFromMime:

    @pytest.mark.parametrize("mime, ext", [
        ("application/pdf", "pdf"),
        ("video/MP4", "mp4"),
        ("text/plain; charset=utf-8", "plain"),
        ("application/x-tgsticker", "bin"),
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", "bin"),
        ("image/", "bin"),
        ("nonsense", "bin"),
        ("a/b/c", "bin"),
        ("image/we bp", "bin"),
        ("image/x:y", "bin"),
        ("", "bin"),
        (None, "bin"),
    ])
    def test_extension(self, mime, ext):
        assert extension_from_mime(mime) == ext

    def test_nine_characters_is_the_limit(self):
        assert extension_from_mime("x/123456789") == "123456789"
        assert extension_from_mime("x/1234567890") == "bin"


class TestPhotos:

    def test_largest_size_selected(self):
        sizes = [
            PhotoStrippedSize(type="i", bytes=b"\x01\x02"),
            PhotoSize(type="s", w=100, h=90, size=100),
            PhotoSize(type="m", w=320, h=240, size=1000),
            PhotoSize(type="y", w=960, h=1280, size=9000),
            PhotoCachedSize(type="a", w=2000, h=2000, bytes=b"x"),
        ]
        resource = locate(photo_media(photo_id=77, sizes=sizes))

        assert resource.filename == "77_y.jpg"
        assert resource.kind is MediaKind.PHOTO
        assert resource.size == 9000
        assert resource.dc_id == 4
        assert isinstance(resource.location, InputPhotoFileLocation)
        assert resource.location.id == 77
        assert resource.location.access_hash == 777
        assert resource.location.thumb_size == "y"

    def test_progressive_size_counts(self):
        sizes = [
            PhotoSize(type="m", w=320, h=240, size=1000),
            PhotoSizeProgressive(type="x", w=800, h=600, sizes=[500, 2500, 7000]),
        ]
        resource = locate(photo_media(photo_id=78, sizes=sizes))

        assert resource.filename == "78_x.jpg"
        assert resource.size == 7000

    def test_tie_keeps_first_seen(self):
        sizes = [
            PhotoSize(type="s", w=100, h=100, size=10),
            PhotoSize(type="m", w=300, h=300, size=20),
            PhotoSize(type="y", w=300, h=300, size=30),
        ]
        assert pick_largest_size(sizes).type == "m"

    def test_tie_across_orientations(self):
        sizes = [
            PhotoSize(type="m", w=300, h=100, size=20),
            PhotoSizeProgressive(type="y", w=100, h=300, sizes=[30]),
        ]
        assert pick_largest_size(sizes).type == "m"

    def test_unknown_size_types_ignored(self, caplog):
        sizes = [PhotoPathSize(type="j", bytes=b"path"), PhotoSize(type="s", w=90, h=90, size=5)]
        with caplog.at_level(logging.WARNING):
            assert pick_largest_size(sizes).type == "s"
        assert "PhotoPathSize" in caplog.text

    def test_only_inline_sizes_is_unresolvable(self):
        sizes = [
            PhotoStrippedSize(type="i", bytes=b"\x01"),
            PhotoCachedSize(type="a", w=90, h=90, bytes=b"x"),
        ]
        with pytest.raises(NoResolvableSize):
            locate(photo_media(sizes=sizes), message_id=4)

    def test_no_sizes_is_unresolvable_and_invalid(self):
        with pytest.raises(InvalidMedia):
            locate(MessageMediaPhoto(photo=make_photo(sizes=[])))

    def test_empty_photo_is_invalid(self):
        with pytest.raises(InvalidMedia):
            locate(MessageMediaPhoto(photo=PhotoEmpty(id=1)))

    def test_photo_without_payload_is_invalid(self):
        with pytest.raises(InvalidMedia):
            locate(MessageMediaPhoto())


class TestUnsupported:

    @pytest.mark.parametrize("media", [
        MessageMediaGeo(geo=GeoPoint(long=1.0, lat=2.0, access_hash=0)),
        MessageMediaUnsupported(),
        None,
    ])
    def test_other_media_is_unsupported(self, media):
        with pytest.raises(UnsupportedMedia) as exc:
            locate(media, message_id=12)
        assert exc.value.message_id == 12
