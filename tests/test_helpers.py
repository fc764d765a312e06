import base64

import pytest

from threaddate.models.brand import Brand
from threaddate.services import page_cache
from threaddate.services.images import InvalidImage, decode_image
from threaddate.services.moderation import apply_brand_decision, ensure_transition
from threaddate.services.slugs import brand_slug, clothing_slug, numbered_slug
from threaddate.utils.affiliate import add_ebay_affiliate_tracking
from threaddate.utils.constants import MAX_IMAGE_BYTES
from threaddate.utils.security import get_safe_redirect_path
from conftest import make_image_b64


@pytest.mark.parametrize(
    "name, slug",
    [
        ("  Levi's  ", "levis"),
        ("Lee Rider & Co", "lee-rider-and-co"),
        ("Abercrombie & Fitch", "abercrombie-and-fitch"),
        ("Coca-Cola", "cocacola"),
        ("Hermès", "hermes"),
        ("Tommy   Hilfiger--", "tommy-hilfiger"),
        ("!!!", ""),
    ],
)
def test_brand_slug(name, slug):
    assert brand_slug(name) == slug


def test_brand_slug_is_deterministic_and_bounded():
    assert brand_slug("Levi Strauss") == brand_slug("levi   strauss")
    assert len(brand_slug("a" * 300)) == 100


def test_hyphen_is_not_a_separator():
    assert brand_slug("Coca Cola") == "coca-cola"
    assert brand_slug("Coca Cola") != brand_slug("Coca-Cola")


def test_clothing_slug_and_numbering():
    assert clothing_slug("Levi's 501 Jeans") == "levi-s-501-jeans"
    assert numbered_slug("jacket", 1) == "jacket"
    assert numbered_slug("jacket", 3) == "jacket-3"


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/brands/levis", "/brands/levis"),
        ("/search?q=champion", "/search?q=champion"),
        (None, "/"),
        ("", "/"),
        ("brands", "/"),
        ("//evil.test", "/"),
        ("/redirect?to=https://evil.test", "/"),
        ("/\\evil.test", "/"),
        ("/JavaScript:alert(1)", "/"),
        ("/data:text/html,hi", "/"),
        ("/%2F%2Fevil.test", "/"),
        ("/x?u=https%3A%2F%2Fevil.test", "/"),
    ],
)
def test_safe_redirect_path(path, expected):
    assert get_safe_redirect_path(path) == expected


def test_safe_redirect_custom_fallback():
    assert get_safe_redirect_path("//evil.test", fallback="/profile") == "/profile"


@pytest.mark.parametrize("fmt, content_type, ext", [("PNG", "image/png", "png"), ("JPEG", "image/jpeg", "jpg"), ("WEBP", "image/webp", "webp")])
def test_decode_image_formats(fmt, content_type, ext):
    img = decode_image(make_image_b64(fmt, data_url=True))
    assert img.content_type == content_type
    assert img.extension == ext


def test_decode_image_trusts_bytes_not_header():
    png = make_image_b64("PNG")
    assert decode_image(f"data:image/jpeg;base64,{png}").content_type == "image/png"


@pytest.mark.parametrize(
    "raw, message",
    [
        ("", "Image is required"),
        ("not base64 at all!", "Invalid base64 image data"),
        (base64.b64encode(b"GIF89a" + b"\x00" * 32).decode(), "Image must be JPEG, PNG, or WebP"),
        (base64.b64encode(b"\x00" * (MAX_IMAGE_BYTES + 1)).decode(), "Image must be less than 5MB"),
    ],
)
def test_decode_image_rejects(raw, message):
    with pytest.raises(InvalidImage) as exc:
        decode_image(raw)
    assert str(exc.value) == message


def test_gif_is_rejected():
    with pytest.raises(InvalidImage):
        decode_image(make_image_b64("GIF"))


def test_page_cache(monkeypatch):
    page_cache.put("/tags/1", {"id": 1})
    assert page_cache.get("/tags/1") == {"id": 1}

    page_cache.revalidate_path("/tags/1", "/never-cached")
    assert page_cache.get("/tags/1") is None

    monkeypatch.setenv("PAGE_CACHE_TTL_SECONDS", "0")
    page_cache.put("/tags/2", {"id": 2})
    assert page_cache.get("/tags/2") is None


def test_brand_decisions():
    brand = Brand(name="Levi's", slug="levis", verified=False, verification_status="pending")

    apply_brand_decision(brand, "verify", "admin-id")
    assert (brand.verified, brand.verification_status, brand.verified_by) == (True, "verified", "admin-id")
    assert brand.verified_at.tzinfo is not None

    apply_brand_decision(brand, "reject", "admin-id")
    assert (brand.verified, brand.verification_status, brand.verified_by) == (False, "rejected", None)

    # a rejected brand can still be verified later
    apply_brand_decision(brand, "verify", "admin-id")
    assert brand.verified is True

    with pytest.raises(ValueError):
        apply_brand_decision(brand, "delete", "admin-id")
    with pytest.raises(ValueError):
        ensure_transition("archived", "verified")


def test_ebay_tracking():
    assert add_ebay_affiliate_tracking(None) is None
    assert add_ebay_affiliate_tracking("https://poshmark.com/brand/levis") == "https://poshmark.com/brand/levis"
    tracked = add_ebay_affiliate_tracking("https://www.ebay.com/b/Levis/bn_1")
    assert "campid=" in tracked
    assert add_ebay_affiliate_tracking(tracked) == tracked
