"""
Tests for access-scoped image links.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from src.common.utils.errors import MediaAccessError
from src.modules.media import media_service as media

CLINIC = "6f1c2a9e-0b4d-4c3e-9a57-2d8e1f0c4b11"
OTHER_CLINIC = "0a9b8c7d-6e5f-4a3b-8c2d-1e0f9a8b7c6d"


def _token(url):
    return parse_qs(urlparse(url).query)["token"][0]


def test_signed_url_hides_storage_path():
    url = media.sign_image_url(CLINIC, "/srv/app/uploads/images/abc/carte.jpg")
    assert url.startswith(f"/clinic/{CLINIC}/admin/images/carte.jpg?token=")
    assert "/srv/app" not in url


def test_windows_style_paths_use_last_component():
    assert media.image_filename("C:\\uploads\\images\\carte.jpg") == "carte.jpg"


def test_token_round_trip():
    url = media.sign_image_url(CLINIC, "uploads/images/carte.jpg")
    payload = media.verify_media_token(_token(url), CLINIC, "carte.jpg")
    assert payload["scope"] == "media"
    assert payload["clinic_id"] == CLINIC


def test_token_bound_to_clinic_and_file():
    token = media.create_media_token(CLINIC, "carte.jpg")
    with pytest.raises(MediaAccessError):
        media.verify_media_token(token, OTHER_CLINIC, "carte.jpg")
    with pytest.raises(MediaAccessError):
        media.verify_media_token(token, CLINIC, "autre.jpg")


def test_expired_token_rejected():
    token = media.create_media_token(CLINIC, "carte.jpg", expires_minutes=-1)
    with pytest.raises(MediaAccessError):
        media.verify_media_token(token, CLINIC, "carte.jpg")


def test_garbage_token_rejected():
    with pytest.raises(MediaAccessError):
        media.verify_media_token("not-a-jwt", CLINIC, "carte.jpg")


@pytest.mark.parametrize("filename", ["", ".", "..", "../secret.jpg", "a/b.jpg", "a\\b.jpg"])
def test_unsafe_filenames(filename):
    assert not media.is_safe_filename(filename)


def test_resolve_image_path(media_root):
    clinic_dir = media_root / CLINIC
    clinic_dir.mkdir()
    (clinic_dir / "carte.jpg").write_bytes(b"\xff\xd8\xff")

    assert media.resolve_image_path(CLINIC, "carte.jpg") == (clinic_dir / "carte.jpg").resolve()
    with pytest.raises(FileNotFoundError):
        media.resolve_image_path(CLINIC, "absent.jpg")
    with pytest.raises(MediaAccessError):
        media.resolve_image_path(CLINIC, "../carte.jpg")


def test_double_dots_inside_a_name_are_allowed(media_root):
    clinic_dir = media_root / CLINIC
    clinic_dir.mkdir()
    (clinic_dir / "photo..jpg").write_bytes(b"\xff\xd8\xff")

    assert media.is_safe_filename("photo..jpg")
    assert media.resolve_image_path(CLINIC, "photo..jpg") == (clinic_dir / "photo..jpg").resolve()
