import pytest

from audiograb.exceptions import UrlValidationError
from audiograb.utils.validation import is_valid_youtube_url, split_url_lines, validate_urls


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtube.com/watch?v=dQw4w9WgXcQ",
        "http://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "www.youtube.com/watch?v=dQw4w9WgXcQ",
        "youtu.be/dQw4w9WgXcQ",
    ],
)
def test_valid_urls(url):
    assert is_valid_youtube_url(url)


@pytest.mark.parametrize("url", ["https://www.google.com", "https://vimeo.com/123456", "not a url", ""])
def test_invalid_urls(url):
    assert not is_valid_youtube_url(url)


def test_split_url_lines_drops_blanks():
    text = "  https://youtu.be/a \n\n\thttps://youtu.be/b\n   \n"
    assert split_url_lines(text) == ["https://youtu.be/a", "https://youtu.be/b"]
    assert split_url_lines("") == []


def test_validate_urls_reports_every_invalid_entry():
    with pytest.raises(UrlValidationError) as exc:
        validate_urls(["https://youtu.be/a", "nope", "https://vimeo.com/1"])
    assert exc.value.invalid_urls == ["nope", "https://vimeo.com/1"]
    assert "nope" in str(exc.value)
    assert isinstance(exc.value, ValueError)


def test_validate_urls_requires_at_least_one():
    with pytest.raises(UrlValidationError, match="No valid URLs provided"):
        validate_urls(["", "   "])


def test_validate_urls_trims():
    assert validate_urls([" https://youtu.be/a "]) == ["https://youtu.be/a"]
