import pytest
from pydantic import ValidationError

from blogsite.config import Settings


@pytest.mark.parametrize("secret", ["", "   ", "change-me", "00000000"])
def test_placeholder_secrets_are_rejected(secret):
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY=secret)


def test_blank_mongodb_url_is_rejected():
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY="a-real-secret", MONGODB_URL=" ")


def test_token_lifetime_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY="a-real-secret", ACCESS_TOKEN_EXPIRE_MINUTES=0)


def test_list_properties():
    settings = Settings(
        SECRET_KEY="a-real-secret",
        BLOG_CATEGORIES="Tech, Design,,Gardening ",
        ADMIN_ALLOWED_EMAILS="Ada@Example.com, bob@example.com",
        CORS_ORIGINS="https://blog.example.com",
    )

    assert settings.blog_categories_list == ["Tech", "Design", "Gardening"]
    assert settings.admin_allowed_emails_list == ["ada@example.com", "bob@example.com"]
    assert settings.cors_origins_list[-1] == "https://blog.example.com"


def test_allow_list_defaults_to_everyone():
    settings = Settings(SECRET_KEY="a-real-secret", ADMIN_ALLOWED_EMAILS=None)

    assert settings.admin_allowed_emails_list == []
    assert settings.SECRET_KEY.get_secret_value() == "a-real-secret"
